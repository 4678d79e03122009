# payments/admin.py

from django.contrib import admin

from payments.models import (
    BillPayment,
    PaymentReceipt,
    SalesBillPayment,
    SalesPaymentReceipt,
    SupplierBillPayment,
)


class _ReadOnlyInline(admin.TabularInline):
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class BillPaymentInline(_ReadOnlyInline):
    model = BillPayment


class SalesBillPaymentInline(_ReadOnlyInline):
    model = SalesBillPayment


class _ReceiptAdmin(admin.ModelAdmin):
    list_filter = ("payment_date", "payment_mode")
    date_hierarchy = "payment_date"

    # Receipts are created and reversed through the payment services only.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PaymentReceipt)
class PaymentReceiptAdmin(_ReceiptAdmin):
    list_display = ("id", "supplier", "payment_date", "total_amount", "bills_count", "bank_account")
    search_fields = ("supplier__name", "reference_no", "cheque_no")
    inlines = [BillPaymentInline]


@admin.register(SalesPaymentReceipt)
class SalesPaymentReceiptAdmin(_ReceiptAdmin):
    list_display = ("id", "customer", "payment_date", "total_amount", "bills_count", "bank_account")
    search_fields = ("customer__name", "reference_no", "cheque_no")
    inlines = [SalesBillPaymentInline]


@admin.register(SupplierBillPayment)
class SupplierBillPaymentAdmin(_ReceiptAdmin):
    list_display = ("id", "purchase_bill", "supplier", "payment_date", "amount", "bank_account")
    search_fields = ("supplier__name", "reference_no", "cheque_no")
