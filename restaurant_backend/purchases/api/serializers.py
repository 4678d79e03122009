# purchases/api/serializers.py

from rest_framework import serializers

from purchases.models import PurchaseBill, PurchaseLine


class PurchaseLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = PurchaseLine
        fields = ["id", "item_name", "item_code", "qty", "rate", "amount"]


class PurchaseBillSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    balance = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    lines = PurchaseLineSerializer(many=True, read_only=True)

    class Meta:
        model = PurchaseBill
        fields = [
            "id",
            "supplier",
            "supplier_name",
            "bill_date",
            "reference_no",
            "amount",
            "gst",
            "other_tax",
            "net_amount",
            "paid_amount",
            "balance",
            "total_qty",
            "status",
            "remarks",
            "created_by",
            "version",
            "lines",
        ]


class PurchaseLineCreateSerializer(serializers.Serializer):
    item_name = serializers.CharField()
    qty = serializers.DecimalField(max_digits=12, decimal_places=3)
    rate = serializers.DecimalField(max_digits=12, decimal_places=2)
    item_code = serializers.IntegerField(required=False, allow_null=True)
    category_id = serializers.IntegerField(required=False, allow_null=True)


class PurchaseBillCreateSerializer(serializers.Serializer):
    supplier_id = serializers.IntegerField()
    bill_date = serializers.DateField(required=False, allow_null=True)
    reference_no = serializers.CharField(required=False, allow_blank=True, default="")
    gst = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    other_tax = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    remarks = serializers.CharField(required=False, allow_blank=True, default="")
    lines = PurchaseLineCreateSerializer(many=True)

    def validate_lines(self, value):
        if not value:
            raise serializers.ValidationError("At least one line is required")
        return value


class PurchaseBillUpdateSerializer(serializers.Serializer):
    supplier_id = serializers.IntegerField(required=False, allow_null=True)
    bill_date = serializers.DateField(required=False, allow_null=True)
    reference_no = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    gst = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    other_tax = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    remarks = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    lines = PurchaseLineCreateSerializer(many=True)

    def validate_lines(self, value):
        if not value:
            raise serializers.ValidationError("At least one line is required")
        return value
