# banking/models/ledger.py

"""
BANK LEDGER ENTRIES

Immutable, append-only. The single sanctioned removal path is
banking.services.bank_ledger.delete_transaction(), which records a
BankLedgerReversal compensation row and restores the account balance.

balance_after is a snapshot; reversal in replay mode rewrites the snapshots
of later entries (the only update ever applied to an existing row).
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .account import BankAccount


class BankLedgerEntry(models.Model):
    KIND_DEPOSIT = "DEPOSIT"
    KIND_WITHDRAW = "WITHDRAW"

    KINDS = [
        (KIND_DEPOSIT, "Deposit"),
        (KIND_WITHDRAW, "Withdraw"),
    ]

    REF_BILL_PAYMENT = "BILL_PAYMENT"
    REF_SUPPLIER_PAYMENT = "SUPPLIER_PAYMENT"
    REF_PURCHASE_PAYMENT = "PURCHASE_PAYMENT"
    REF_CUSTOMER_PAYMENT = "CUSTOMER_PAYMENT"
    REF_ADJUSTMENT = "ADJUSTMENT"

    account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        related_name="entries",
    )

    particulars = models.CharField(max_length=255, blank=True, default="")

    deposit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    withdraw = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    balance_after = models.DecimalField(max_digits=14, decimal_places=2)

    kind = models.CharField(max_length=10, choices=KINDS)

    # Loose foreign key to the causing aggregate (e.g. BILL_PAYMENT / bill_no).
    reference_type = models.CharField(max_length=40, blank=True, default="")
    reference_id = models.BigIntegerField(null=True, blank=True)

    remarks = models.CharField(max_length=255, blank=True, default="")
    transaction_date = models.DateField(default=timezone.localdate)

    created_by = models.BigIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        verbose_name_plural = "bank ledger entries"
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(kind="DEPOSIT", deposit__gt=0, withdraw=0)
                    | models.Q(kind="WITHDRAW", withdraw__gt=0, deposit=0)
                ),
                name="bank_entry_exactly_one_side",
            ),
        ]
        indexes = [
            models.Index(fields=["account", "transaction_date"]),
            models.Index(fields=["reference_type", "reference_id"]),
        ]

    def clean(self):
        if self.kind == self.KIND_DEPOSIT:
            if not self.deposit or self.deposit <= 0 or self.withdraw:
                raise ValidationError("DEPOSIT entries carry a positive deposit and zero withdraw")
        elif self.kind == self.KIND_WITHDRAW:
            if not self.withdraw or self.withdraw <= 0 or self.deposit:
                raise ValidationError("WITHDRAW entries carry a positive withdraw and zero deposit")
        else:
            raise ValidationError(f"Invalid kind: {self.kind}")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            update_fields = kwargs.get("update_fields")
            if update_fields is None or set(update_fields) - {"balance_after"}:
                raise ValidationError("Bank ledger entries are immutable")
        else:
            self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "Bank ledger entries cannot be deleted directly; use delete_transaction()"
        )

    @property
    def amount(self) -> Decimal:
        return self.deposit if self.kind == self.KIND_DEPOSIT else self.withdraw

    @property
    def signed_amount(self) -> Decimal:
        return self.deposit - self.withdraw

    def __str__(self):
        return f"{self.account_id} | {self.kind} | {self.amount} | bal {self.balance_after}"


class BankLedgerReversal(models.Model):
    """
    Compensation record written when a ledger entry is reversed.
    Keeps the original entry's facts after the entry row is gone.
    """

    original_entry_id = models.BigIntegerField(db_index=True)

    account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        related_name="reversals",
    )

    kind = models.CharField(max_length=10, choices=BankLedgerEntry.KINDS)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    original_transaction_date = models.DateField()
    reference_type = models.CharField(max_length=40, blank=True, default="")
    reference_id = models.BigIntegerField(null=True, blank=True)

    balance_before = models.DecimalField(max_digits=14, decimal_places=2)
    balance_after = models.DecimalField(max_digits=14, decimal_places=2)
    mode = models.CharField(max_length=10, default="replay")
    reason = models.CharField(max_length=255, blank=True, default="")

    reversed_by = models.BigIntegerField(null=True, blank=True)
    reversed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-reversed_at"]

    def __str__(self):
        return f"Reversal of #{self.original_entry_id} ({self.kind} {self.amount})"
