# purchases/admin.py

from django.contrib import admin

from purchases.models import PurchaseBill, PurchaseLine


class PurchaseLineInline(admin.TabularInline):
    model = PurchaseLine
    extra = 0
    can_delete = False
    readonly_fields = ("item_name", "item_code", "qty", "rate", "amount")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(PurchaseBill)
class PurchaseBillAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "supplier",
        "bill_date",
        "reference_no",
        "net_amount",
        "paid_amount",
        "status",
    )
    list_filter = ("status", "bill_date")
    search_fields = ("reference_no", "supplier__name")
    inlines = [PurchaseLineInline]
    readonly_fields = ("paid_amount", "status", "version", "created_by")
