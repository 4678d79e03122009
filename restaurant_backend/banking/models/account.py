# banking/models/account.py

from decimal import Decimal

from django.db import models


class BankAccount(models.Model):
    """
    Bank / cash account with a running balance.

    GUARANTEES (service-enforced):
    - balance == opening_balance + sum(deposit - withdraw) over live entries
    - balance is written ONLY by banking.services.bank_ledger
    - version increments on every ledger write (concurrent-edit detection)
    """

    STATUS_ACTIVE = "ACTIVE"
    STATUS_INACTIVE = "INACTIVE"

    STATUSES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    name = models.CharField(max_length=150)
    account_no = models.CharField(max_length=40, blank=True, default="")
    account_type = models.CharField(max_length=40, blank=True, default="")
    ifsc = models.CharField(max_length=20, blank=True, default="")
    branch_name = models.CharField(max_length=120, blank=True, default="")

    opening_balance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    balance = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Running balance (service-managed).",
    )

    status = models.CharField(max_length=10, choices=STATUSES, default=STATUS_ACTIVE)
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"]),
        ]

    def save(self, *args, **kwargs):
        # A brand-new account starts at its opening balance.
        if self._state.adding and not self.balance:
            self.balance = self.opening_balance or Decimal("0.00")
        return super().save(*args, **kwargs)

    @property
    def is_active(self) -> bool:
        return self.status == self.STATUS_ACTIVE

    def __str__(self):
        return f"{self.name} ({self.account_no})" if self.account_no else self.name
