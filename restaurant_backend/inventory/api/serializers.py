# inventory/api/serializers.py

from rest_framework import serializers

from inventory.models import StockItem, StockLedgerEntry


class StockItemSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True, default="")
    is_low = serializers.BooleanField(read_only=True)

    class Meta:
        model = StockItem
        fields = [
            "id",
            "item_code",
            "item_name",
            "category",
            "category_name",
            "stock",
            "unit",
            "min_stock_level",
            "is_low",
            "version",
            "updated_at",
        ]


class StockLedgerEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = StockLedgerEntry
        fields = "__all__"


class StockAdjustSerializer(serializers.Serializer):
    item_code = serializers.IntegerField(required=False, allow_null=True)
    item_name = serializers.CharField(required=False, allow_blank=True, default="")
    category_id = serializers.IntegerField(required=False, allow_null=True)
    new_stock = serializers.DecimalField(max_digits=14, decimal_places=3)
    remarks = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs.get("item_code") is None and not (attrs.get("item_name") or "").strip():
            raise serializers.ValidationError("item_code or item_name is required")
        return attrs
