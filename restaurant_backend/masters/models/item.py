# masters/models/item.py

from decimal import Decimal

from django.db import models

from .category import Category


class Item(models.Model):
    """
    Menu item. item_code is the business identity used by the stock ledger;
    name is the fallback identity when a code is missing.
    """

    item_code = models.PositiveIntegerField(unique=True, null=True, blank=True)
    name = models.CharField(max_length=200, db_index=True)

    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name="items",
        null=True,
        blank=True,
    )

    rate = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category", "name"]),
        ]

    def __str__(self):
        return f"{self.name} #{self.item_code}" if self.item_code else self.name
