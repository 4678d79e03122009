# payments/services/supplier_payments.py

"""
======================================================
PATH: payments/services/supplier_payments.py
======================================================
SINGLE-BILL SUPPLIER PAYMENTS

record_bill_payment():
- amount > 0 and <= bill balance (checked before any write)
- one WITHDRAW bank entry per payment (PURCHASE_PAYMENT / bill id)
- bill.paid_amount += amount; status -> PAID / PARTIALLY_PAID

delete_bill_payment():
- reverses the payment's bank entry, releases the amount (floored at 0)
  and moves the bill back to PARTIALLY_PAID / PENDING.
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
from core.exceptions import EntityNotFoundError
from core.money import ZERO, money
from payments.models import SupplierBillPayment
from payments.services.allocation import PaymentAllocationError, check_balance, release_amount
from purchases.models import PurchaseBill
from purchases.services.purchase_service import save_payment_state


logger = logging.getLogger("payments")


class SupplierPaymentNotFoundError(PaymentAllocationError, EntityNotFoundError):
    pass


@dataclass(frozen=True)
class PaymentDeletion:
    payment_id: int
    purchase_bill_id: int
    released: Decimal
    bank_reversal: ReversalResult | None


@transaction.atomic
def record_bill_payment(
    *,
    bill_id,
    amount,
    bank_account_id,
    payment_mode: str = "",
    cheque_no: str = "",
    reference_no: str = "",
    remarks: str = "",
    payment_date=None,
    ctx: OperationContext | None = None,
) -> SupplierBillPayment:
    ctx = ctx or OperationContext.system()

    try:
        value = money(amount)
    except ValueError as exc:
        raise PaymentAllocationError(str(exc)) from exc
    if value <= ZERO:
        raise PaymentAllocationError("Payment amount must be greater than zero")

    bill = (
        PurchaseBill.objects.select_for_update()
        .select_related("supplier")
        .filter(pk=bill_id)
        .first()
    )
    if bill is None:
        raise PaymentAllocationError(f"Purchase bill not found: {bill_id}")
    check_balance(label=f"Purchase bill #{bill.id}", amount=value, balance=bill.balance)

    on_date = payment_date or timezone.localdate()
    entry = withdraw(
        account_id=bank_account_id,
        amount=value,
        particulars=f"Purchase Bill Payment #{bill.id} - {bill.supplier.name}",
        reference_type=BankLedgerEntry.REF_PURCHASE_PAYMENT,
        reference_id=bill.id,
        remarks=remarks or f"Payment for Purchase Bill #{bill.id}",
        transaction_date=on_date,
        ctx=ctx,
    )

    payment = SupplierBillPayment.objects.create(
        purchase_bill=bill,
        supplier_id=bill.supplier_id,
        payment_date=on_date,
        amount=value,
        bank_account_id=bank_account_id,
        bank_entry=entry,
        payment_mode=(payment_mode or "").strip(),
        cheque_no=(cheque_no or "").strip(),
        reference_no=(reference_no or "").strip(),
        remarks=(remarks or "").strip(),
        created_by=ctx.employee_id,
    )

    bill.paid_amount = money(bill.paid_amount + value)
    save_payment_state(bill)

    logger.info(
        "Purchase bill payment recorded",
        extra={
            "payment_id": payment.id,
            "purchase_bill_id": bill.id,
            "amount": str(value),
            "status": bill.status,
            "bank_entry_id": entry.id,
        },
    )
    return payment


@transaction.atomic
def delete_bill_payment(
    *, payment_id, reason: str = "", ctx: OperationContext | None = None
) -> PaymentDeletion:
    ctx = ctx or OperationContext.system()

    try:
        payment = SupplierBillPayment.objects.select_for_update().get(pk=payment_id)
    except SupplierBillPayment.DoesNotExist as exc:
        raise SupplierPaymentNotFoundError(f"Supplier payment {payment_id} not found") from exc

    reversal = None
    if payment.bank_entry_id is not None:
        reversal = delete_transaction(
            entry_id=payment.bank_entry_id,
            reason=reason or f"Supplier payment #{payment.id} deleted",
            ctx=ctx,
        )

    bill = PurchaseBill.objects.select_for_update().get(pk=payment.purchase_bill_id)
    bill.paid_amount = release_amount(paid_amount=bill.paid_amount, amount=payment.amount)
    save_payment_state(bill)

    original_id = payment.id
    payment.delete()

    logger.info(
        "Purchase bill payment deleted",
        extra={"payment_id": original_id, "purchase_bill_id": bill.id, "status": bill.status},
    )
    return PaymentDeletion(
        payment_id=original_id,
        purchase_bill_id=bill.id,
        released=money(payment.amount),
        bank_reversal=reversal,
    )


# ======================================================
# QUERIES
# ======================================================

def payments_for_bill(*, bill_id):
    return SupplierBillPayment.objects.filter(purchase_bill_id=bill_id)


def payments_for_supplier(*, supplier_id, start_date=None, end_date=None):
    qs = SupplierBillPayment.objects.filter(supplier_id=supplier_id)
    if start_date is not None:
        qs = qs.filter(payment_date__gte=start_date)
    if end_date is not None:
        qs = qs.filter(payment_date__lte=end_date)
    return qs


def payments_between(*, start_date, end_date):
    return SupplierBillPayment.objects.select_related("purchase_bill", "supplier").filter(
        payment_date__gte=start_date, payment_date__lte=end_date
    )


def total_paid_for_bill(*, bill_id) -> Decimal:
    agg = payments_for_bill(bill_id=bill_id).aggregate(total=Sum("amount"))
    return money(agg["total"] or 0)


def total_paid_between(*, start_date, end_date, supplier_id=None) -> Decimal:
    qs = payments_between(start_date=start_date, end_date=end_date)
    if supplier_id is not None:
        qs = qs.filter(supplier_id=supplier_id)
    return money(qs.aggregate(total=Sum("amount"))["total"] or 0)
