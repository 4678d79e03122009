# billing/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.api.serializers import (
    BillCreditSerializer,
    BillEditSerializer,
    BillFromTableSerializer,
    BillPaySerializer,
    BillSerializer,
    BillShiftSerializer,
    DraftLineCreateSerializer,
    DraftLineSerializer,
    DraftQuantitySerializer,
    TableShiftSerializer,
)
from billing.models import Bill
from billing.services import bill_service, drafts
from billing.services.bill_edit import update_bill_with_transactions
from billing.services.errors import BillingError
from core.api import error_response, result_payload
from core.context import OperationContext
from core.exceptions import EngineValidationError


def _bill_payload(result):
    bill = bill_service.get_bill(bill_no=result.value.bill_no)
    return result_payload(result, BillSerializer(bill).data)


# ======================================================
# DRAFT LINES (open orders)
# ======================================================

class DraftLineListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = DraftLineCreateSerializer

    @extend_schema(tags=["billing"], responses=DraftLineSerializer(many=True))
    def get(self, request, table_no):
        qs = drafts.lines_for_table(table_no=table_no)
        return Response(
            {
                "lines": DraftLineSerializer(qs, many=True).data,
                "totals": {
                    k: str(v) if k in ("qty", "amt") else v
                    for k, v in drafts.table_totals(table_no=table_no).items()
                },
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["billing"],
        request=DraftLineCreateSerializer,
        responses={201: DraftLineSerializer},
    )
    def post(self, request, table_no):
        payload = dict(request.data.items())
        payload["table_no"] = table_no
        s = self.get_serializer(data=payload)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            line = drafts.create_draft_line(
                table_no=table_no,
                item_name=data["item_name"],
                qty=data["qty"],
                rate=data["rate"],
                print_qty=data.get("print_qty"),
                waiter_id=data.get("waiter_id"),
                ctx=OperationContext.from_request(request),
            )
        except BillingError as exc:
            return error_response(exc)

        return Response(DraftLineSerializer(line).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["billing"])
    def delete(self, request, table_no):
        deleted = drafts.clear_table(table_no=table_no)
        return Response({"deleted": deleted}, status=status.HTTP_200_OK)


class DraftLineDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = DraftQuantitySerializer

    @extend_schema(tags=["billing"], request=DraftQuantitySerializer)
    def patch(self, request, line_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            line = drafts.update_draft_quantity(line_id=line_id, qty=s.validated_data["qty"])
        except BillingError as exc:
            return error_response(exc)

        if line is None:
            return Response({"deleted": True}, status=status.HTTP_200_OK)
        return Response(DraftLineSerializer(line).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["billing"])
    def delete(self, request, line_id):
        try:
            drafts.delete_draft_line(line_id=line_id)
        except BillingError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


class KitchenPrintView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["billing"], responses=DraftLineSerializer(many=True))
    def get(self, request, table_no):
        qs = drafts.printable_lines(table_no=table_no)
        return Response(DraftLineSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["billing"])
    def post(self, request, table_no):
        """Mark the table's pending kitchen quantities as printed."""
        reset = drafts.reset_print_qty(table_no=table_no)
        return Response({"reset": reset}, status=status.HTTP_200_OK)


class TableShiftView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = TableShiftSerializer

    @extend_schema(tags=["billing"], request=TableShiftSerializer)
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            result = bill_service.shift_table(
                source_table=s.validated_data["source_table"],
                target_table=s.validated_data["target_table"],
                ctx=OperationContext.from_request(request),
            )
        except BillingError as exc:
            return error_response(exc)

        return Response(result, status=status.HTTP_200_OK)


# ======================================================
# BILLS
# ======================================================

class BillListView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BillFromTableSerializer

    @extend_schema(tags=["billing"], responses=BillSerializer(many=True))
    def get(self, request):
        params = request.query_params
        try:
            if params.get("customer"):
                qs = bill_service.bills_by_customer(customer_id=params["customer"])
            elif params.get("date") or params.get("start_date") or params.get("end_date"):
                qs = bill_service.bills_by_date(
                    bill_date=params.get("date") or None,
                    start_date=params.get("start_date") or None,
                    end_date=params.get("end_date") or None,
                )
            else:
                qs = Bill.objects.all()
        except BillingError as exc:
            return error_response(exc)

        if params.get("status"):
            qs = qs.filter(status=params["status"])
        qs = qs.prefetch_related("lines").select_related("customer")
        return Response(BillSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["billing"],
        request=BillFromTableSerializer,
        responses={201: BillSerializer},
    )
    def post(self, request):
        """Finalize a table's open order as CLOSE, PAID or CREDIT."""
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data
        ctx = OperationContext.from_request(request)

        try:
            if data["status"] == Bill.STATUS_CLOSE:
                result = bill_service.create_closed_bill(
                    table_no=data["table_no"],
                    customer_id=data.get("customer_id"),
                    waiter_id=data.get("waiter_id"),
                    remarks=data.get("remarks", ""),
                    ctx=ctx,
                )
            elif data["status"] == Bill.STATUS_PAID:
                result = bill_service.create_paid_bill(
                    table_no=data["table_no"],
                    discount=data.get("discount"),
                    cash_received=data.get("cash_received"),
                    return_amount=data.get("return_amount"),
                    paymode=data.get("paymode"),
                    bank_account_id=data.get("bank_account_id"),
                    customer_id=data.get("customer_id"),
                    waiter_id=data.get("waiter_id"),
                    remarks=data.get("remarks", ""),
                    ctx=ctx,
                )
            else:
                result = bill_service.create_credit_bill(
                    table_no=data["table_no"],
                    customer_id=data["customer_id"],
                    discount=data.get("discount"),
                    waiter_id=data.get("waiter_id"),
                    remarks=data.get("remarks", ""),
                    ctx=ctx,
                )
        except EngineValidationError as exc:
            return error_response(exc)

        return Response(_bill_payload(result), status=status.HTTP_201_CREATED)


class BillDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BillEditSerializer

    @extend_schema(tags=["billing"], responses=BillSerializer)
    def get(self, request, bill_no):
        try:
            bill = bill_service.get_bill(bill_no=bill_no)
        except BillingError as exc:
            return error_response(exc)
        return Response(BillSerializer(bill).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["billing"], request=BillEditSerializer, responses=BillSerializer)
    def put(self, request, bill_no):
        """Replace the bill's lines (stock is reversed and re-applied)."""
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = update_bill_with_transactions(
                bill_no=bill_no,
                lines=data["lines"],
                waiter_id=data.get("waiter_id"),
                customer_id=data.get("customer_id"),
                discount=data.get("discount"),
                cash_received=data.get("cash_received"),
                return_amount=data.get("return_amount"),
                status=data.get("status"),
                ctx=OperationContext.from_request(request),
            )
        except BillingError as exc:
            return error_response(exc)

        return Response(_bill_payload(result), status=status.HTTP_200_OK)


class BillPayView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BillPaySerializer

    @extend_schema(tags=["billing"], request=BillPaySerializer, responses=BillSerializer)
    def post(self, request, bill_no):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = bill_service.mark_bill_as_paid(
                bill_no=bill_no,
                discount=data.get("discount"),
                cash_received=data.get("cash_received"),
                return_amount=data.get("return_amount"),
                paymode=data.get("paymode"),
                bank_account_id=data.get("bank_account_id"),
                customer_id=data.get("customer_id"),
                ctx=OperationContext.from_request(request),
            )
        except EngineValidationError as exc:
            return error_response(exc)

        return Response(_bill_payload(result), status=status.HTTP_200_OK)


class BillCreditView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BillCreditSerializer

    @extend_schema(tags=["billing"], request=BillCreditSerializer, responses=BillSerializer)
    def post(self, request, bill_no):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            result = bill_service.mark_bill_as_credit(
                bill_no=bill_no,
                customer_id=s.validated_data["customer_id"],
                discount=s.validated_data.get("discount"),
                ctx=OperationContext.from_request(request),
            )
        except BillingError as exc:
            return error_response(exc)

        return Response(_bill_payload(result), status=status.HTTP_200_OK)


class BillAddItemsView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["billing"], responses=BillSerializer)
    def post(self, request, bill_no):
        """Merge the table's new open-order lines into this CLOSE bill."""
        try:
            result = bill_service.add_transactions_to_closed_bill(
                bill_no=bill_no, ctx=OperationContext.from_request(request)
            )
        except BillingError as exc:
            return error_response(exc)

        return Response(_bill_payload(result), status=status.HTTP_200_OK)


class BillShiftView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BillShiftSerializer

    @extend_schema(tags=["billing"], request=BillShiftSerializer, responses=BillSerializer)
    def post(self, request, bill_no):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            bill = bill_service.shift_bill_to_table(
                bill_no=bill_no,
                target_table=s.validated_data["target_table"],
                ctx=OperationContext.from_request(request),
            )
        except BillingError as exc:
            return error_response(exc)

        return Response(BillSerializer(bill).data, status=status.HTTP_200_OK)
