# purchases/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.api import error_response, result_payload
from core.context import OperationContext
from purchases.api.serializers import (
    PurchaseBillCreateSerializer,
    PurchaseBillSerializer,
    PurchaseBillUpdateSerializer,
)
from purchases.models import PurchaseBill
from purchases.services.purchase_service import (
    PurchaseBillError,
    create_purchase_bill,
    get_purchase_bill,
    outstanding_purchase_bills,
    purchase_bills_for_supplier,
    update_purchase_bill,
)


class PurchaseBillListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseBillCreateSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseBillSerializer(many=True))
    def get(self, request):
        """?supplier=<id> narrows to one supplier, ?outstanding=1 hides PAID bills."""
        params = request.query_params
        supplier_id = params.get("supplier") or None

        if params.get("outstanding"):
            qs = outstanding_purchase_bills(supplier_id=supplier_id)
        elif supplier_id:
            qs = purchase_bills_for_supplier(supplier_id=supplier_id)
        else:
            qs = PurchaseBill.objects.select_related("supplier").order_by("-id")

        qs = qs.prefetch_related("lines")
        return Response(PurchaseBillSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=PurchaseBillCreateSerializer,
        responses={201: PurchaseBillSerializer},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = create_purchase_bill(
                supplier_id=data["supplier_id"],
                lines=data["lines"],
                gst=data.get("gst"),
                other_tax=data.get("other_tax"),
                bill_date=data.get("bill_date"),
                reference_no=data.get("reference_no", ""),
                remarks=data.get("remarks", ""),
                ctx=OperationContext.from_request(request),
            )
        except PurchaseBillError as exc:
            return error_response(exc)

        bill = get_purchase_bill(bill_id=result.value.id)
        return Response(
            result_payload(result, PurchaseBillSerializer(bill).data),
            status=status.HTTP_201_CREATED,
        )


class PurchaseBillDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseBillUpdateSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseBillSerializer)
    def get(self, request, bill_id):
        try:
            bill = get_purchase_bill(bill_id=bill_id)
        except PurchaseBillError as exc:
            return error_response(exc)
        return Response(PurchaseBillSerializer(bill).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=PurchaseBillUpdateSerializer,
        responses=PurchaseBillSerializer,
    )
    def put(self, request, bill_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = update_purchase_bill(
                bill_id=bill_id,
                lines=data["lines"],
                supplier_id=data.get("supplier_id"),
                gst=data.get("gst"),
                other_tax=data.get("other_tax"),
                bill_date=data.get("bill_date"),
                reference_no=data.get("reference_no"),
                remarks=data.get("remarks"),
                ctx=OperationContext.from_request(request),
            )
        except PurchaseBillError as exc:
            return error_response(exc)

        bill = get_purchase_bill(bill_id=result.value.id)
        return Response(
            result_payload(result, PurchaseBillSerializer(bill).data),
            status=status.HTTP_200_OK,
        )
