# payments/api/views.py

"""
Supplier and customer receipts share one view shape; each concrete view
binds a service module, a serializer and the party query parameter.
Single-bill supplier payments have their own list / detail pair.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from banking.services.bank_ledger import BankLedgerError
from billing.services.bill_service import parse_bill_date
from billing.services.errors import BillingError
from core.api import error_response
from core.context import OperationContext
from payments.api.serializers import (
    BillPaymentCreateSerializer,
    GroupedPaymentSerializer,
    PaymentReceiptSerializer,
    ReceiptDeleteSerializer,
    SalesPaymentReceiptSerializer,
    SupplierBillPaymentSerializer,
)
from payments.models import PaymentReceipt, SalesPaymentReceipt, SupplierBillPayment
from payments.services import customer_receipts, supplier_payments, supplier_receipts
from payments.services.allocation import PaymentAllocationError, ReceiptNotFoundError


class _ReceiptListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = GroupedPaymentSerializer

    service = None
    model = None
    read_serializer = None
    party_field = ""
    party_param = ""
    bill_param = ""

    def _queryset(self, params):
        if params.get(self.party_param):
            return self.service.receipts_for_party(**{self.party_param: params[self.party_param]})
        if params.get("bill"):
            return self.service.receipts_for_bill(**{self.bill_param: params["bill"]})
        if params.get("start_date") and params.get("end_date"):
            return self.service.receipts_between(
                start_date=parse_bill_date(params["start_date"]),
                end_date=parse_bill_date(params["end_date"]),
            )
        return self.model.objects.all()

    def get(self, request):
        try:
            qs = self._queryset(request.query_params)
        except BillingError as exc:
            return error_response(exc)
        qs = qs.select_related(self.party_field).prefetch_related("allocations")
        return Response(self.read_serializer(qs, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            receipt = self.service.record_grouped_payment(
                **{self.party_param: data["party_id"]},
                total_amount=data["total_amount"],
                bank_account_id=data["bank_account_id"],
                allocations=data["allocations"],
                payment_mode=data.get("payment_mode", ""),
                cheque_no=data.get("cheque_no", ""),
                reference_no=data.get("reference_no", ""),
                remarks=data.get("remarks", ""),
                payment_date=data.get("payment_date"),
                ctx=OperationContext.from_request(request),
            )
        except (PaymentAllocationError, BankLedgerError) as exc:
            return error_response(exc)

        return Response(self.read_serializer(receipt).data, status=status.HTTP_201_CREATED)


class _ReceiptDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ReceiptDeleteSerializer

    service = None
    model = None
    read_serializer = None

    def get(self, request, receipt_id):
        receipt = self.model.objects.prefetch_related("allocations").filter(pk=receipt_id).first()
        if receipt is None:
            return error_response(ReceiptNotFoundError(f"Receipt {receipt_id} not found"))
        return Response(self.read_serializer(receipt).data, status=status.HTTP_200_OK)

    def delete(self, request, receipt_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            deletion = self.service.delete_receipt(
                receipt_id=receipt_id,
                reason=s.validated_data.get("reason", ""),
                ctx=OperationContext.from_request(request),
            )
        except (PaymentAllocationError, BankLedgerError) as exc:
            return error_response(exc)

        reversal = deletion.bank_reversal
        return Response(
            {
                "receipt_id": deletion.receipt_id,
                "released": {str(k): str(v) for k, v in deletion.released.items()},
                "bank_balance_after": str(reversal.balance_after) if reversal else None,
            },
            status=status.HTTP_200_OK,
        )


@extend_schema(tags=["payments"])
class SupplierReceiptListCreateView(_ReceiptListCreateView):
    service = supplier_receipts
    model = PaymentReceipt
    read_serializer = PaymentReceiptSerializer
    party_field = "supplier"
    party_param = "supplier_id"
    bill_param = "bill_id"


@extend_schema(tags=["payments"])
class SupplierReceiptDetailView(_ReceiptDetailView):
    service = supplier_receipts
    model = PaymentReceipt
    read_serializer = PaymentReceiptSerializer


@extend_schema(tags=["payments"])
class CustomerReceiptListCreateView(_ReceiptListCreateView):
    service = customer_receipts
    model = SalesPaymentReceipt
    read_serializer = SalesPaymentReceiptSerializer
    party_field = "customer"
    party_param = "customer_id"
    bill_param = "bill_no"


@extend_schema(tags=["payments"])
class CustomerReceiptDetailView(_ReceiptDetailView):
    service = customer_receipts
    model = SalesPaymentReceipt
    read_serializer = SalesPaymentReceiptSerializer


@extend_schema(tags=["payments"])
class SupplierBillPaymentListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BillPaymentCreateSerializer

    def _queryset(self, params):
        start = parse_bill_date(params["start_date"]) if params.get("start_date") else None
        end = parse_bill_date(params["end_date"]) if params.get("end_date") else None
        if params.get("bill"):
            return supplier_payments.payments_for_bill(bill_id=params["bill"])
        if params.get("supplier_id"):
            return supplier_payments.payments_for_supplier(
                supplier_id=params["supplier_id"], start_date=start, end_date=end
            )
        if start and end:
            return supplier_payments.payments_between(start_date=start, end_date=end)
        return SupplierBillPayment.objects.all()

    def get(self, request):
        try:
            qs = self._queryset(request.query_params)
        except BillingError as exc:
            return error_response(exc)
        qs = qs.select_related("supplier")
        return Response(SupplierBillPaymentSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            payment = supplier_payments.record_bill_payment(
                **data, ctx=OperationContext.from_request(request)
            )
        except (PaymentAllocationError, BankLedgerError) as exc:
            return error_response(exc)

        return Response(SupplierBillPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["payments"])
class SupplierBillPaymentDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ReceiptDeleteSerializer

    def get(self, request, payment_id):
        payment = SupplierBillPayment.objects.select_related("supplier").filter(pk=payment_id).first()
        if payment is None:
            return error_response(
                supplier_payments.SupplierPaymentNotFoundError(f"Supplier payment {payment_id} not found")
            )
        return Response(SupplierBillPaymentSerializer(payment).data, status=status.HTTP_200_OK)

    def delete(self, request, payment_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            deletion = supplier_payments.delete_bill_payment(
                payment_id=payment_id,
                reason=s.validated_data.get("reason", ""),
                ctx=OperationContext.from_request(request),
            )
        except (PaymentAllocationError, BankLedgerError) as exc:
            return error_response(exc)

        reversal = deletion.bank_reversal
        return Response(
            {
                "payment_id": deletion.payment_id,
                "purchase_bill_id": deletion.purchase_bill_id,
                "released": str(deletion.released),
                "bank_balance_after": str(reversal.balance_after) if reversal else None,
            },
            status=status.HTTP_200_OK,
        )
