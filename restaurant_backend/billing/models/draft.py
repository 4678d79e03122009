# billing/models/draft.py

from decimal import Decimal

from django.db import models


class DraftLine(models.Model):
    """
    Open-order cart line for a table (pre-bill).

    - Unique per (table_no, item_name, rate); repeated adds merge.
    - amt == qty * rate
    - print_qty is the portion not yet sent to the kitchen printer.
    - Destroyed when the table's bill is created.
    """

    table_no = models.PositiveIntegerField(db_index=True)
    item_name = models.CharField(max_length=200)
    item_code = models.PositiveIntegerField(null=True, blank=True)
    category_id_snapshot = models.BigIntegerField(null=True, blank=True)

    qty = models.DecimalField(max_digits=12, decimal_places=3)
    rate = models.DecimalField(max_digits=12, decimal_places=2)
    amt = models.DecimalField(max_digits=14, decimal_places=2)
    print_qty = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("0.000"))

    waiter_id = models.BigIntegerField(null=True, blank=True)
    created_by = models.BigIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["table_no", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["table_no", "item_name", "rate"],
                name="uniq_draft_line_table_item_rate",
            ),
        ]

    def __str__(self):
        return f"T{self.table_no} | {self.item_name} x {self.qty} @ {self.rate}"
