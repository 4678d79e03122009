# payments/api/serializers.py

from rest_framework import serializers

from payments.models import (
    BillPayment,
    PaymentReceipt,
    SalesBillPayment,
    SalesPaymentReceipt,
    SupplierBillPayment,
)


class BillPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = BillPayment
        fields = ["id", "purchase_bill", "amount", "payment_date"]


class PaymentReceiptSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    allocations = BillPaymentSerializer(many=True, read_only=True)

    class Meta:
        model = PaymentReceipt
        fields = [
            "id",
            "supplier",
            "supplier_name",
            "payment_date",
            "total_amount",
            "bills_count",
            "bank_account",
            "bank_entry",
            "payment_mode",
            "cheque_no",
            "reference_no",
            "remarks",
            "created_by",
            "allocations",
        ]


class SalesBillPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = SalesBillPayment
        fields = ["id", "bill", "amount", "payment_date"]


class SalesPaymentReceiptSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    allocations = SalesBillPaymentSerializer(many=True, read_only=True)

    class Meta:
        model = SalesPaymentReceipt
        fields = [
            "id",
            "customer",
            "customer_name",
            "payment_date",
            "total_amount",
            "bills_count",
            "bank_account",
            "bank_entry",
            "payment_mode",
            "cheque_no",
            "reference_no",
            "remarks",
            "created_by",
            "allocations",
        ]


class SupplierBillPaymentSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)

    class Meta:
        model = SupplierBillPayment
        fields = [
            "id",
            "purchase_bill",
            "supplier",
            "supplier_name",
            "payment_date",
            "amount",
            "bank_account",
            "bank_entry",
            "payment_mode",
            "cheque_no",
            "reference_no",
            "remarks",
            "created_by",
        ]


class AllocationSerializer(serializers.Serializer):
    bill_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class GroupedPaymentSerializer(serializers.Serializer):
    party_id = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    bank_account_id = serializers.IntegerField()
    payment_mode = serializers.CharField(required=False, allow_blank=True, default="")
    cheque_no = serializers.CharField(required=False, allow_blank=True, default="")
    reference_no = serializers.CharField(required=False, allow_blank=True, default="")
    remarks = serializers.CharField(required=False, allow_blank=True, default="")
    payment_date = serializers.DateField(required=False, allow_null=True)
    allocations = AllocationSerializer(many=True)


class ReceiptDeleteSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class BillPaymentCreateSerializer(serializers.Serializer):
    bill_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    bank_account_id = serializers.IntegerField()
    payment_mode = serializers.CharField(required=False, allow_blank=True, default="")
    cheque_no = serializers.CharField(required=False, allow_blank=True, default="")
    reference_no = serializers.CharField(required=False, allow_blank=True, default="")
    remarks = serializers.CharField(required=False, allow_blank=True, default="")
    payment_date = serializers.DateField(required=False, allow_null=True)
