# inventory/admin.py

from django.contrib import admin

from inventory.models import StockItem, StockLedgerEntry


@admin.register(StockItem)
class StockItemAdmin(admin.ModelAdmin):
    list_display = ("item_name", "item_code", "category", "stock", "min_stock_level", "unit")
    list_filter = ("category",)
    search_fields = ("item_name", "item_code")
    # Stock moves only through the ledger services (adjust_stock for corrections).
    readonly_fields = ("stock", "version", "created_at", "updated_at")


@admin.register(StockLedgerEntry)
class StockLedgerEntryAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "item_name",
        "transaction_type",
        "quantity",
        "previous_stock",
        "new_stock",
        "reference_type",
        "reference_no",
        "transaction_date",
    )
    list_filter = ("transaction_type", "reference_type")
    search_fields = ("item_name", "reference_no", "remarks")
    date_hierarchy = "transaction_date"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
