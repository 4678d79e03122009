# payments/services/supplier_receipts.py

"""
======================================================
PATH: payments/services/supplier_receipts.py
======================================================
SUPPLIER GROUPED PAYMENTS

record_grouped_payment():
1. validate allocations, supplier and every bill (no writes yet)
2. ONE bank WITHDRAW for total_amount (SUPPLIER_PAYMENT)
3. ONE PaymentReceipt referencing that entry
4. one BillPayment per allocation; bill.paid_amount += amount;
   status -> PAID when covered, else PARTIALLY_PAID

delete_receipt():
- reverses the bank entry, releases each allocation (floored at 0),
  status -> PARTIALLY_PAID / PENDING, deletes the receipt.

All-or-nothing: any failure rolls the whole command back.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
import logging

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from banking.models import BankLedgerEntry
from banking.services.bank_ledger import ReversalResult, delete_transaction, withdraw
from core.context import OperationContext
from core.money import money
from masters.models import Supplier
from payments.models import BillPayment, PaymentReceipt
from payments.services.allocation import (
    PaymentAllocationError,
    ReceiptNotFoundError,
    check_balance,
    parse_allocations,
    particulars_for,
    release_amount,
)
from purchases.models import PurchaseBill
from purchases.services.purchase_service import save_payment_state


logger = logging.getLogger("payments")


@dataclass(frozen=True)
class ReceiptDeletion:
    receipt_id: int
    released: dict
    bank_reversal: ReversalResult | None


@transaction.atomic
def record_grouped_payment(
    *,
    supplier_id,
    total_amount,
    bank_account_id,
    allocations,
    payment_mode: str = "",
    cheque_no: str = "",
    reference_no: str = "",
    remarks: str = "",
    payment_date=None,
    ctx: OperationContext | None = None,
) -> PaymentReceipt:
    ctx = ctx or OperationContext.system()
    total, parsed = parse_allocations(allocations, total_amount=total_amount)

    supplier = Supplier.objects.filter(pk=supplier_id).first()
    if supplier is None:
        raise PaymentAllocationError(f"Supplier {supplier_id} not found")

    bills = {
        b.id: b
        for b in PurchaseBill.objects.select_for_update()
        .filter(id__in=[a.bill_id for a in parsed])
        .order_by("id")
    }
    for alloc in parsed:
        bill = bills.get(alloc.bill_id)
        if bill is None:
            raise PaymentAllocationError(f"Purchase bill not found: {alloc.bill_id}")
        if bill.supplier_id != supplier.id:
            raise PaymentAllocationError(
                f"Purchase bill #{bill.id} does not belong to supplier {supplier.name}"
            )
        check_balance(label=f"Purchase bill #{bill.id}", amount=alloc.amount, balance=bill.balance)

    on_date = payment_date or timezone.localdate()
    entry = withdraw(
        account_id=bank_account_id,
        amount=total,
        particulars=particulars_for(
            prefix="Supplier Payment", party_name=supplier.name, allocations=parsed
        ),
        reference_type=BankLedgerEntry.REF_SUPPLIER_PAYMENT,
        reference_id=None,
        remarks=remarks or "Supplier Payment Receipt",
        transaction_date=on_date,
        ctx=ctx,
    )

    receipt = PaymentReceipt.objects.create(
        supplier=supplier,
        payment_date=on_date,
        total_amount=total,
        bills_count=len(parsed),
        bank_account_id=bank_account_id,
        bank_entry=entry,
        payment_mode=(payment_mode or "").strip(),
        cheque_no=(cheque_no or "").strip(),
        reference_no=(reference_no or "").strip(),
        remarks=(remarks or "").strip(),
        created_by=ctx.employee_id,
    )

    for alloc in parsed:
        bill = bills[alloc.bill_id]
        BillPayment.objects.create(
            receipt=receipt,
            purchase_bill=bill,
            amount=alloc.amount,
            payment_date=on_date,
        )
        bill.paid_amount = money(bill.paid_amount + alloc.amount)
        save_payment_state(bill)

    logger.info(
        "Supplier payment recorded",
        extra={
            "receipt_id": receipt.id,
            "supplier_id": supplier.id,
            "total_amount": str(total),
            "bills": len(parsed),
            "bank_entry_id": entry.id,
        },
    )
    return receipt


@transaction.atomic
def delete_receipt(
    *, receipt_id, reason: str = "", ctx: OperationContext | None = None
) -> ReceiptDeletion:
    ctx = ctx or OperationContext.system()

    try:
        receipt = PaymentReceipt.objects.select_for_update().get(pk=receipt_id)
    except PaymentReceipt.DoesNotExist as exc:
        raise ReceiptNotFoundError(f"Payment receipt {receipt_id} not found") from exc

    reversal = None
    if receipt.bank_entry_id is not None:
        reversal = delete_transaction(
            entry_id=receipt.bank_entry_id,
            reason=reason or f"Supplier receipt #{receipt.id} deleted",
            ctx=ctx,
        )

    released: dict[int, Decimal] = {}
    for alloc in receipt.allocations.order_by("purchase_bill_id"):
        bill = PurchaseBill.objects.select_for_update().get(pk=alloc.purchase_bill_id)
        bill.paid_amount = release_amount(paid_amount=bill.paid_amount, amount=alloc.amount)
        save_payment_state(bill)
        released[bill.id] = alloc.amount

    original_id = receipt.id
    receipt.delete()

    logger.info(
        "Supplier payment receipt deleted",
        extra={"receipt_id": original_id, "bills": len(released)},
    )
    return ReceiptDeletion(receipt_id=original_id, released=released, bank_reversal=reversal)


# ======================================================
# QUERIES
# ======================================================

def receipts_for_bill(*, bill_id):
    return PaymentReceipt.objects.filter(allocations__purchase_bill_id=bill_id).distinct()


def receipts_for_party(*, supplier_id):
    return PaymentReceipt.objects.filter(supplier_id=supplier_id)


def receipts_between(*, start_date, end_date):
    return PaymentReceipt.objects.filter(
        payment_date__gte=start_date, payment_date__lte=end_date
    )


def total_payments_between(*, start_date, end_date) -> Decimal:
    agg = receipts_between(start_date=start_date, end_date=end_date).aggregate(
        total=Sum("total_amount")
    )
    return money(agg["total"] or 0)
