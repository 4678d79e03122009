# billing/models/bill.py

"""
SALE BILL

State machine:
    (draft lines) -> CLOSE -> PAID
                          -> CREDIT -> PAID (through customer receipt allocation)

GUARANTEES (service-enforced):
- sum(line.amt) == bill_amt
- net_amount == bill_amt - discount
- customer is set iff status == CREDIT at creation / transition time
- paid_amount <= net_amount (checked at allocation time)
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from banking.models import BankAccount, BankLedgerEntry
from masters.models import Customer


class Bill(models.Model):
    STATUS_CLOSE = "CLOSE"
    STATUS_PAID = "PAID"
    STATUS_CREDIT = "CREDIT"

    STATUSES = [
        (STATUS_CLOSE, "Close"),
        (STATUS_PAID, "Paid"),
        (STATUS_CREDIT, "Credit"),
    ]

    FINAL_STATUSES = (STATUS_PAID, STATUS_CREDIT)

    PAYMODE_PENDING = "PENDING"
    PAYMODE_CASH = "CASH"
    PAYMODE_CARD = "CARD"
    PAYMODE_UPI = "UPI"
    PAYMODE_BANK = "BANK"
    PAYMODE_CREDIT = "CREDIT"

    PAYMODES = [
        (PAYMODE_PENDING, "Pending"),
        (PAYMODE_CASH, "Cash"),
        (PAYMODE_CARD, "Card"),
        (PAYMODE_UPI, "UPI"),
        (PAYMODE_BANK, "Bank"),
        (PAYMODE_CREDIT, "Credit"),
    ]

    bill_no = models.BigAutoField(primary_key=True)

    table_no = models.PositiveIntegerField(null=True, blank=True, db_index=True)
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="bills",
        null=True,
        blank=True,
    )
    waiter_id = models.BigIntegerField(null=True, blank=True)

    bill_amt = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    net_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    cash_received = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    return_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_qty = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))

    paymode = models.CharField(max_length=10, choices=PAYMODES, default=PAYMODE_PENDING)
    status = models.CharField(max_length=10, choices=STATUSES, default=STATUS_CLOSE)

    bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        related_name="bills",
        null=True,
        blank=True,
    )
    bank_entry = models.ForeignKey(
        BankLedgerEntry,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )

    bill_date = models.DateField(default=timezone.localdate, db_index=True)
    bill_time = models.TimeField(null=True, blank=True)
    remarks = models.CharField(max_length=255, blank=True, default="")

    created_by = models.BigIntegerField(null=True, blank=True)
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-bill_no"]
        indexes = [
            models.Index(fields=["status", "bill_date"]),
            models.Index(fields=["customer", "status"]),
        ]

    @property
    def balance(self) -> Decimal:
        return (self.net_amount or Decimal("0.00")) - (self.paid_amount or Decimal("0.00"))

    @property
    def is_final(self) -> bool:
        return self.status in self.FINAL_STATUSES

    @property
    def display_date(self) -> str:
        fmt = getattr(settings, "BILL_DATE_DISPLAY_FORMAT", "%d-%m-%Y")
        return self.bill_date.strftime(fmt) if self.bill_date else ""

    def __str__(self):
        return f"Bill #{self.bill_no} ({self.status})"


class BillLine(models.Model):
    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name="lines")

    item_name = models.CharField(max_length=200)
    item_code = models.PositiveIntegerField(null=True, blank=True)
    category_id_snapshot = models.BigIntegerField(null=True, blank=True)

    qty = models.DecimalField(max_digits=12, decimal_places=3)
    rate = models.DecimalField(max_digits=12, decimal_places=2)
    amt = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["bill", "item_name"]),
        ]

    def __str__(self):
        return f"{self.item_name} x {self.qty} @ {self.rate}"
