# billing/api/serializers.py

from rest_framework import serializers

from billing.models import Bill, BillLine, DraftLine


# ======================================================
# READ
# ======================================================

class DraftLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = DraftLine
        fields = [
            "id",
            "table_no",
            "item_name",
            "item_code",
            "qty",
            "rate",
            "amt",
            "print_qty",
            "waiter_id",
            "created_at",
        ]


class BillLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = BillLine
        fields = ["id", "item_name", "item_code", "qty", "rate", "amt"]


class BillSerializer(serializers.ModelSerializer):
    lines = BillLineSerializer(many=True, read_only=True)
    balance = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    display_date = serializers.CharField(read_only=True)
    customer_name = serializers.SerializerMethodField()

    class Meta:
        model = Bill
        fields = [
            "bill_no",
            "table_no",
            "customer",
            "customer_name",
            "waiter_id",
            "bill_amt",
            "discount",
            "net_amount",
            "cash_received",
            "return_amount",
            "paid_amount",
            "balance",
            "total_qty",
            "paymode",
            "status",
            "bank_account",
            "bill_date",
            "display_date",
            "bill_time",
            "remarks",
            "created_by",
            "version",
            "lines",
        ]

    def get_customer_name(self, obj):
        return getattr(getattr(obj, "customer", None), "name", None)


# ======================================================
# WRITE
# ======================================================

class DraftLineCreateSerializer(serializers.Serializer):
    table_no = serializers.IntegerField(min_value=1)
    item_name = serializers.CharField()
    qty = serializers.DecimalField(max_digits=12, decimal_places=3)
    rate = serializers.DecimalField(max_digits=12, decimal_places=2)
    print_qty = serializers.DecimalField(
        max_digits=12, decimal_places=3, required=False, allow_null=True
    )
    waiter_id = serializers.IntegerField(required=False, allow_null=True)


class DraftQuantitySerializer(serializers.Serializer):
    qty = serializers.DecimalField(max_digits=12, decimal_places=3)


class TableShiftSerializer(serializers.Serializer):
    source_table = serializers.IntegerField(min_value=1)
    target_table = serializers.IntegerField(min_value=1)


class BillFromTableSerializer(serializers.Serializer):
    table_no = serializers.IntegerField(min_value=1)
    status = serializers.ChoiceField(choices=[s for s, _ in Bill.STATUSES])
    customer_id = serializers.IntegerField(required=False, allow_null=True)
    waiter_id = serializers.IntegerField(required=False, allow_null=True)
    discount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    cash_received = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    return_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    paymode = serializers.CharField(required=False, default=Bill.PAYMODE_CASH)
    bank_account_id = serializers.IntegerField(required=False, allow_null=True)
    remarks = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs["status"] == Bill.STATUS_CREDIT and not attrs.get("customer_id"):
            raise serializers.ValidationError({"customer_id": "Required for a credit bill"})
        return attrs


class BillPaySerializer(serializers.Serializer):
    discount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    cash_received = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    return_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    paymode = serializers.CharField(required=False, default=Bill.PAYMODE_CASH)
    bank_account_id = serializers.IntegerField(required=False, allow_null=True)
    customer_id = serializers.IntegerField(required=False, allow_null=True)


class BillCreditSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    discount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)


class BillShiftSerializer(serializers.Serializer):
    target_table = serializers.IntegerField(min_value=1)


class EditLineSerializer(serializers.Serializer):
    item_name = serializers.CharField()
    qty = serializers.DecimalField(max_digits=12, decimal_places=3)
    rate = serializers.DecimalField(max_digits=12, decimal_places=2)
    item_code = serializers.IntegerField(required=False, allow_null=True)
    category_id = serializers.IntegerField(required=False, allow_null=True)


class BillEditSerializer(serializers.Serializer):
    lines = EditLineSerializer(many=True)
    waiter_id = serializers.IntegerField(required=False, allow_null=True)
    customer_id = serializers.IntegerField(required=False, allow_null=True)
    discount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    cash_received = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    return_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    status = serializers.ChoiceField(
        choices=[Bill.STATUS_PAID, Bill.STATUS_CREDIT], required=False, allow_null=True
    )

    def validate_lines(self, value):
        if not value:
            raise serializers.ValidationError("At least one line is required")
        return value
