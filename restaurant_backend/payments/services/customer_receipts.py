# payments/services/customer_receipts.py

"""
======================================================
PATH: payments/services/customer_receipts.py
======================================================
CUSTOMER GROUPED RECEIPTS

Mirror of the supplier side against sale bills:
- ONE bank DEPOSIT (CUSTOMER_PAYMENT) per receipt
- only CREDIT bills of the same customer accept allocations
- fully covered -> PAID, partially covered stays CREDIT
- delete_receipt releases allocations and moves PAID bills back to CREDIT
"""

from __future__ import annotations

from decimal import Decimal
import logging

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from banking.models import BankLedgerEntry
from banking.services.bank_ledger import delete_transaction, deposit
from billing.models import Bill
from core.context import OperationContext
from core.money import money
from masters.models import Customer
from payments.models import SalesBillPayment, SalesPaymentReceipt
from payments.services.allocation import (
    PaymentAllocationError,
    ReceiptNotFoundError,
    check_balance,
    is_fully_paid,
    parse_allocations,
    particulars_for,
    release_amount,
)
from payments.services.supplier_receipts import ReceiptDeletion


logger = logging.getLogger("payments")


def _save_bill(bill: Bill) -> None:
    if is_fully_paid(paid_amount=bill.paid_amount, net_amount=bill.net_amount):
        bill.status = Bill.STATUS_PAID
    else:
        bill.status = Bill.STATUS_CREDIT
    bill.version = bill.version + 1
    bill.save(update_fields=["paid_amount", "status", "version", "updated_at"])


@transaction.atomic
def record_grouped_payment(
    *,
    customer_id,
    total_amount,
    bank_account_id,
    allocations,
    payment_mode: str = "",
    cheque_no: str = "",
    reference_no: str = "",
    remarks: str = "",
    payment_date=None,
    ctx: OperationContext | None = None,
) -> SalesPaymentReceipt:
    ctx = ctx or OperationContext.system()
    total, parsed = parse_allocations(allocations, total_amount=total_amount)

    customer = Customer.objects.filter(pk=customer_id).first()
    if customer is None:
        raise PaymentAllocationError(f"Customer {customer_id} not found")

    bills = {
        b.bill_no: b
        for b in Bill.objects.select_for_update()
        .filter(bill_no__in=[a.bill_id for a in parsed])
        .order_by("bill_no")
    }
    for alloc in parsed:
        bill = bills.get(alloc.bill_id)
        if bill is None:
            raise PaymentAllocationError(f"Bill not found: {alloc.bill_id}")
        if bill.customer_id != customer.id:
            raise PaymentAllocationError(
                f"Bill #{bill.bill_no} does not belong to customer {customer.name}"
            )
        if bill.status != Bill.STATUS_CREDIT:
            raise PaymentAllocationError(
                f"Bill #{bill.bill_no} is {bill.status}; only CREDIT bills accept receipts"
            )
        check_balance(label=f"Bill #{bill.bill_no}", amount=alloc.amount, balance=bill.balance)

    on_date = payment_date or timezone.localdate()
    entry = deposit(
        account_id=bank_account_id,
        amount=total,
        particulars=particulars_for(
            prefix="Customer Payment", party_name=customer.name, allocations=parsed
        ),
        reference_type=BankLedgerEntry.REF_CUSTOMER_PAYMENT,
        reference_id=None,
        remarks=remarks or "Customer Payment Receipt",
        transaction_date=on_date,
        ctx=ctx,
    )

    receipt = SalesPaymentReceipt.objects.create(
        customer=customer,
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
        SalesBillPayment.objects.create(
            receipt=receipt,
            bill=bill,
            amount=alloc.amount,
            payment_date=on_date,
        )
        bill.paid_amount = money(bill.paid_amount + alloc.amount)
        _save_bill(bill)

    logger.info(
        "Customer payment recorded",
        extra={
            "receipt_id": receipt.id,
            "customer_id": customer.id,
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
        receipt = SalesPaymentReceipt.objects.select_for_update().get(pk=receipt_id)
    except SalesPaymentReceipt.DoesNotExist as exc:
        raise ReceiptNotFoundError(f"Sales payment receipt {receipt_id} not found") from exc

    reversal = None
    if receipt.bank_entry_id is not None:
        reversal = delete_transaction(
            entry_id=receipt.bank_entry_id,
            reason=reason or f"Customer receipt #{receipt.id} deleted",
            ctx=ctx,
        )

    released: dict[int, Decimal] = {}
    for alloc in receipt.allocations.order_by("bill_id"):
        bill = Bill.objects.select_for_update().get(pk=alloc.bill_id)
        bill.paid_amount = release_amount(paid_amount=bill.paid_amount, amount=alloc.amount)
        _save_bill(bill)
        released[bill.bill_no] = alloc.amount

    original_id = receipt.id
    receipt.delete()

    logger.info(
        "Customer payment receipt deleted",
        extra={"receipt_id": original_id, "bills": len(released)},
    )
    return ReceiptDeletion(receipt_id=original_id, released=released, bank_reversal=reversal)


# ======================================================
# QUERIES
# ======================================================

def receipts_for_bill(*, bill_no):
    return SalesPaymentReceipt.objects.filter(allocations__bill_id=bill_no).distinct()


def receipts_for_party(*, customer_id):
    return SalesPaymentReceipt.objects.filter(customer_id=customer_id)


def receipts_between(*, start_date, end_date):
    return SalesPaymentReceipt.objects.filter(
        payment_date__gte=start_date, payment_date__lte=end_date
    )


def total_payments_between(*, start_date, end_date) -> Decimal:
    agg = receipts_between(start_date=start_date, end_date=end_date).aggregate(
        total=Sum("total_amount")
    )
    return money(agg["total"] or 0)
