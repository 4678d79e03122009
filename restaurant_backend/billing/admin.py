# billing/admin.py

from django.contrib import admin

from billing.models import Bill, BillLine, DraftLine


class BillLineInline(admin.TabularInline):
    model = BillLine
    extra = 0
    can_delete = False
    readonly_fields = ("item_name", "item_code", "qty", "rate", "amt")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = (
        "bill_no",
        "table_no",
        "status",
        "paymode",
        "bill_amt",
        "discount",
        "net_amount",
        "paid_amount",
        "bill_date",
    )
    list_filter = ("status", "paymode", "bill_date")
    search_fields = ("bill_no", "customer__name", "remarks")
    date_hierarchy = "bill_date"
    inlines = [BillLineInline]
    # Bills change only through the billing services.
    readonly_fields = [f.name for f in Bill._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(DraftLine)
class DraftLineAdmin(admin.ModelAdmin):
    list_display = ("table_no", "item_name", "qty", "rate", "amt", "print_qty", "waiter_id")
    list_filter = ("table_no",)
    search_fields = ("item_name",)
