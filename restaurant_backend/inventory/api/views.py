# inventory/api/views.py

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView, ListAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.api import error_response
from core.context import OperationContext
from inventory.api.serializers import (
    StockAdjustSerializer,
    StockItemSerializer,
    StockLedgerEntrySerializer,
)
from inventory.models import StockLedgerEntry
from inventory.services import stock_ledger
from inventory.services.stock_ledger import StockLedgerError


class StockItemListView(ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = StockItemSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["category", "item_code"]

    @extend_schema(tags=["inventory"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        view = self.request.query_params.get("view")
        if view == "low":
            return stock_ledger.low_stock_items()
        if view == "out":
            return stock_ledger.out_of_stock_items()
        return stock_ledger.list_stock_items()


class StockLedgerListView(ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = StockLedgerEntrySerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["item", "transaction_type", "reference_type", "reference_no"]

    @extend_schema(tags=["inventory"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return StockLedgerEntry.objects.select_related("item").order_by("-id")


class StockByCategoryView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["inventory"])
    def get(self, request):
        rows = stock_ledger.stock_by_category()
        for r in rows:
            r["total_stock"] = str(r["total_stock"])
        return Response(rows, status=status.HTTP_200_OK)


class StockAdjustView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = StockAdjustSerializer

    @extend_schema(
        tags=["inventory"],
        request=StockAdjustSerializer,
        responses={200: StockLedgerEntrySerializer},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            entry = stock_ledger.adjust_stock(
                item_code=data.get("item_code"),
                item_name=data.get("item_name", ""),
                category_id=data.get("category_id"),
                new_stock=data["new_stock"],
                remarks=data.get("remarks", ""),
                ctx=OperationContext.from_request(request),
            )
        except StockLedgerError as exc:
            return error_response(exc)

        return Response(
            {"entry": StockLedgerEntrySerializer(entry).data if entry else None},
            status=status.HTTP_200_OK,
        )
