# banking/admin.py

from django.contrib import admin

from banking.models import BankAccount, BankLedgerEntry, BankLedgerReversal


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ("name", "account_no", "balance", "status", "version")
    list_filter = ("status",)
    search_fields = ("name", "account_no", "ifsc")
    # Balance moves only through the ledger services.
    readonly_fields = ("balance", "version", "created_at", "updated_at")


@admin.register(BankLedgerEntry)
class BankLedgerEntryAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "account",
        "transaction_date",
        "kind",
        "deposit",
        "withdraw",
        "balance_after",
        "reference_type",
        "reference_id",
    )
    list_filter = ("kind", "reference_type", "account")
    search_fields = ("particulars", "remarks")
    date_hierarchy = "transaction_date"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(BankLedgerReversal)
class BankLedgerReversalAdmin(admin.ModelAdmin):
    list_display = ("original_entry_id", "account", "kind", "amount", "mode", "reversed_at")
    list_filter = ("mode", "kind")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
