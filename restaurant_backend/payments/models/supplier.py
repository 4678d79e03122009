# payments/models/supplier.py

"""
SUPPLIER PAYMENT RECEIPT

One receipt == one WITHDRAW bank entry, spread over one or more purchase bills.

GUARANTEES (service-enforced):
- sum(allocation.amount) == total_amount (within LEDGER_AMOUNT_TOLERANCE)
- every allocated bill belongs to the receipt's supplier
- bank_entry is cleared only by the receipt reversal path
"""

from decimal import Decimal

from django.db import models
from django.utils import timezone

from banking.models import BankAccount, BankLedgerEntry
from masters.models import Supplier
from purchases.models import PurchaseBill


class PaymentReceipt(models.Model):
    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="payment_receipts",
    )

    payment_date = models.DateField(default=timezone.localdate, db_index=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2)
    bills_count = models.PositiveIntegerField(default=0)

    bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        related_name="supplier_receipts",
    )
    bank_entry = models.ForeignKey(
        BankLedgerEntry,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )

    payment_mode = models.CharField(max_length=30, blank=True, default="")
    cheque_no = models.CharField(max_length=50, blank=True, default="")
    reference_no = models.CharField(max_length=64, blank=True, default="")
    remarks = models.CharField(max_length=255, blank=True, default="")

    created_by = models.BigIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gt=Decimal("0.00")),
                name="supplier_receipt_amount_gt_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier", "payment_date"]),
        ]

    def __str__(self):
        return f"Receipt #{self.id} - {self.supplier.name} - {self.total_amount}"


class BillPayment(models.Model):
    receipt = models.ForeignKey(
        PaymentReceipt,
        on_delete=models.CASCADE,
        related_name="allocations",
    )
    purchase_bill = models.ForeignKey(
        PurchaseBill,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_date = models.DateField(default=timezone.localdate)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="bill_payment_amount_gt_zero",
            ),
            models.UniqueConstraint(
                fields=["receipt", "purchase_bill"],
                name="uniq_receipt_purchase_bill",
            ),
        ]

    def __str__(self):
        return f"Purchase #{self.purchase_bill_id} <- {self.amount}"


class SupplierBillPayment(models.Model):
    """
    A payment against exactly one purchase bill, with its own WITHDRAW
    bank entry (PURCHASE_PAYMENT / purchase bill id).
    """

    purchase_bill = models.ForeignKey(
        PurchaseBill,
        on_delete=models.PROTECT,
        related_name="direct_payments",
    )
    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="bill_payments",
    )

    payment_date = models.DateField(default=timezone.localdate, db_index=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)

    bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        related_name="supplier_bill_payments",
    )
    bank_entry = models.ForeignKey(
        BankLedgerEntry,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )

    payment_mode = models.CharField(max_length=30, blank=True, default="")
    cheque_no = models.CharField(max_length=50, blank=True, default="")
    reference_no = models.CharField(max_length=64, blank=True, default="")
    remarks = models.CharField(max_length=255, blank=True, default="")

    created_by = models.BigIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="supplier_bill_payment_amount_gt_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier", "payment_date"]),
        ]

    def __str__(self):
        return f"Payment #{self.id} - Purchase #{self.purchase_bill_id} - {self.amount}"
