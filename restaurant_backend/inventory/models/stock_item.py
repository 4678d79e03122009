# inventory/models/stock_item.py

from decimal import Decimal

from django.db import models

from masters.models import Category


class StockItem(models.Model):
    """
    Per-item running stock level.

    - Created lazily on the first stock-affecting transaction.
    - Identity is item_code; item_name is the fallback when the code is missing.
    - stock may go negative (shortages are surfaced, not blocked).
    - stock is written ONLY by inventory.services.stock_ledger.
    """

    item_code = models.PositiveIntegerField(unique=True, null=True, blank=True)
    item_name = models.CharField(max_length=200, db_index=True)

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        related_name="stock_items",
        null=True,
        blank=True,
    )

    stock = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))
    unit = models.CharField(max_length=20, blank=True, default="")
    min_stock_level = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000")
    )

    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["item_name"]
        indexes = [
            models.Index(fields=["category", "item_name"]),
        ]

    @property
    def is_low(self) -> bool:
        return self.stock <= self.min_stock_level

    def __str__(self):
        return f"{self.item_name} ({self.stock})"
