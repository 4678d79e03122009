# inventory/models/stock_ledger.py

"""
STOCK LEDGER

Immutable stock movement entry.

GUARANTEES:
- Append-only (no updates, no deletes)
- new_stock == previous_stock +/- quantity (direction from transaction_type)
- ADJUSTMENT stores abs(delta) as quantity; direction comes from the snapshots
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .stock_item import StockItem


class StockLedgerEntry(models.Model):
    class TransactionType(models.TextChoices):
        PURCHASE = "PURCHASE", "Purchase"
        SALE = "SALE", "Sale"
        SALE_REVERSAL = "SALE_REVERSAL", "Sale Reversal"
        PURCHASE_REVERSAL = "PURCHASE_REVERSAL", "Purchase Reversal"
        ADJUSTMENT = "ADJUSTMENT", "Adjustment"

    class ReferenceType(models.TextChoices):
        PURCHASE_BILL = "PURCHASE_BILL", "Purchase Bill"
        SALES_BILL = "SALES_BILL", "Sales Bill"
        ADJUSTMENT = "ADJUSTMENT", "Adjustment"

    # +1 adds stock, -1 removes stock, None = derived from snapshots.
    DIRECTION = {
        "PURCHASE": 1,
        "SALE_REVERSAL": 1,
        "SALE": -1,
        "PURCHASE_REVERSAL": -1,
        "ADJUSTMENT": None,
    }

    item = models.ForeignKey(
        StockItem,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )

    # Denormalized identity at posting time.
    item_code = models.PositiveIntegerField(null=True, blank=True)
    item_name = models.CharField(max_length=200)
    category_id_snapshot = models.BigIntegerField(null=True, blank=True)

    transaction_type = models.CharField(max_length=20, choices=TransactionType.choices)

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    rate = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    previous_stock = models.DecimalField(max_digits=14, decimal_places=3)
    new_stock = models.DecimalField(max_digits=14, decimal_places=3)

    reference_type = models.CharField(max_length=20, choices=ReferenceType.choices)
    reference_no = models.CharField(max_length=40, blank=True, default="")

    transaction_date = models.DateField(default=timezone.localdate)
    remarks = models.CharField(max_length=255, blank=True, default="")

    created_by = models.BigIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        verbose_name_plural = "stock ledger entries"
        indexes = [
            models.Index(fields=["item", "id"]),
            models.Index(fields=["transaction_type", "transaction_date"]),
            models.Index(fields=["reference_type", "reference_no"]),
        ]

    def clean(self):
        if self.quantity is None or self.quantity < 0:
            raise ValidationError("quantity must not be negative")

        direction = self.DIRECTION.get(self.transaction_type)
        if direction is None:
            if abs(self.new_stock - self.previous_stock) != self.quantity:
                raise ValidationError("ADJUSTMENT quantity must equal abs(new - previous)")
            return

        if self.quantity == 0:
            raise ValidationError("quantity must be greater than zero")
        if self.new_stock != self.previous_stock + direction * self.quantity:
            raise ValidationError(
                f"{self.transaction_type} snapshot mismatch: "
                f"{self.previous_stock} -> {self.new_stock} for {self.quantity}"
            )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Stock ledger entries are immutable")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Stock ledger entries are immutable and cannot be deleted")

    @property
    def signed_quantity(self) -> Decimal:
        return self.new_stock - self.previous_stock

    def __str__(self):
        return f"{self.item_name} | {self.transaction_type} | {self.quantity}"
