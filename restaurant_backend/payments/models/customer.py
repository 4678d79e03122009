# payments/models/customer.py

"""
CUSTOMER (SALES) PAYMENT RECEIPT

One receipt == one DEPOSIT bank entry, spread over one or more CREDIT bills.
"""

from decimal import Decimal

from django.db import models
from django.utils import timezone

from banking.models import BankAccount, BankLedgerEntry
from billing.models import Bill
from masters.models import Customer


class SalesPaymentReceipt(models.Model):
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="payment_receipts",
    )

    payment_date = models.DateField(default=timezone.localdate, db_index=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2)
    bills_count = models.PositiveIntegerField(default=0)

    bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        related_name="customer_receipts",
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
                name="customer_receipt_amount_gt_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["customer", "payment_date"]),
        ]

    def __str__(self):
        return f"Sales receipt #{self.id} - {self.customer.name} - {self.total_amount}"


class SalesBillPayment(models.Model):
    receipt = models.ForeignKey(
        SalesPaymentReceipt,
        on_delete=models.CASCADE,
        related_name="allocations",
    )
    bill = models.ForeignKey(
        Bill,
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
                name="sales_bill_payment_amount_gt_zero",
            ),
            models.UniqueConstraint(
                fields=["receipt", "bill"],
                name="uniq_receipt_sales_bill",
            ),
        ]

    def __str__(self):
        return f"Bill #{self.bill_id} <- {self.amount}"
