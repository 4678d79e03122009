# purchases/models/purchase_bill.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from masters.models import Supplier


class PurchaseBill(models.Model):
    """
    Supplier bill header.

    net_amount = amount + gst + other_tax.
    paid_amount moves only through supplier payment receipts.
    """

    STATUS_PENDING = "PENDING"
    STATUS_PARTIALLY_PAID = "PARTIALLY_PAID"
    STATUS_PAID = "PAID"

    STATUSES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PARTIALLY_PAID, "Partially paid"),
        (STATUS_PAID, "Paid"),
    ]

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="purchase_bills",
    )

    bill_date = models.DateField(default=timezone.localdate, db_index=True)
    reference_no = models.CharField(max_length=64, blank=True, default="")

    amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    gst = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    other_tax = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    net_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_qty = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))

    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_PENDING)
    remarks = models.CharField(max_length=255, blank=True, default="")

    created_by = models.BigIntegerField(null=True, blank=True)
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gte=Decimal("0.00")),
                name="purchase_bill_amount_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(paid_amount__gte=Decimal("0.00")),
                name="purchase_bill_paid_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier", "status"]),
            models.Index(fields=["status", "bill_date"]),
        ]

    def clean(self):
        for field in ("amount", "gst", "other_tax"):
            value = getattr(self, field)
            if value is not None and value < Decimal("0.00"):
                raise ValidationError({field: f"{field} cannot be negative"})

    @property
    def balance(self) -> Decimal:
        return (self.net_amount or Decimal("0.00")) - (self.paid_amount or Decimal("0.00"))

    def __str__(self):
        ref = f" ({self.reference_no})" if self.reference_no else ""
        return f"Purchase #{self.id}{ref} - {self.supplier.name}"


class PurchaseLine(models.Model):
    bill = models.ForeignKey(PurchaseBill, on_delete=models.CASCADE, related_name="lines")

    item_name = models.CharField(max_length=200)
    item_code = models.PositiveIntegerField(null=True, blank=True)
    category_id_snapshot = models.BigIntegerField(null=True, blank=True)

    qty = models.DecimalField(max_digits=12, decimal_places=3)
    rate = models.DecimalField(max_digits=12, decimal_places=2)
    amount = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(qty__gt=0),
                name="purchase_line_qty_gt_zero",
            ),
        ]

    def __str__(self):
        return f"{self.item_name} x {self.qty}"
