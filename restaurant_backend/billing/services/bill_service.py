# billing/services/bill_service.py

"""
======================================================
PATH: billing/services/bill_service.py
======================================================
BILL AGGREGATE SERVICES

Transitions:
- create_closed_bill:       drafts -> CLOSE (no stock effect)
- create_paid_bill:         drafts -> PAID  (stock reduced)
- create_credit_bill:       drafts -> CREDIT (stock reduced, customer required)
- mark_bill_as_paid:        CLOSE -> PAID
- mark_bill_as_credit:      CLOSE -> CREDIT
- add_transactions_to_closed_bill: merge new drafts into a CLOSE bill

Rules:
- Bill + lines + draft clearing + bank deposit are strict (any failure aborts).
- Stock reduction and table cleanup are lenient: each runs in a savepoint,
  failures come back as ServiceResult warnings.
- CREDIT -> PAID happens only through customer receipt allocation.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from banking.services.bank_ledger import record_bill_payment
from billing.models import Bill, BillLine, DraftLine
from billing.services.drafts import require_table, shift_draft_lines
from billing.services.consolidation import (
    LineData,
    consolidate,
    line_from_bill_line,
    line_from_draft,
    totals,
)
from billing.services.errors import (
    BillingError,
    BillNotFoundError,
    InvalidBillTransitionError,
)
from billing.signals import release_table
from core.context import OperationContext
from core.money import ZERO, money
from core.results import ServiceResult, WarningCollector
from inventory.services.stock_ledger import reduce_stock
from masters.models import Customer
from masters.services import table_label


logger = logging.getLogger("billing")


# ======================================================
# INTERNALS
# ======================================================

def _now_time():
    return timezone.localtime().time().replace(microsecond=0)


def lock_bill(bill_no) -> Bill:
    try:
        return Bill.objects.select_for_update().get(pk=bill_no)
    except Bill.DoesNotExist as exc:
        logger.error("Bill not found", extra={"bill_no": bill_no})
        raise BillNotFoundError(f"Bill {bill_no} not found") from exc


def require_customer(customer_id) -> Customer:
    if customer_id is None:
        raise BillingError("Customer is required for a credit bill")
    try:
        return Customer.objects.get(pk=customer_id, is_active=True)
    except Customer.DoesNotExist as exc:
        raise BillingError(f"Customer {customer_id} not found") from exc


def optional_customer(customer_id) -> Customer | None:
    return None if customer_id is None else require_customer(customer_id)


def money_arg(value, *, field: str, default=ZERO) -> Decimal:
    if value is None or value == "":
        return default
    try:
        v = money(value)
    except ValueError as exc:
        raise BillingError(f"{field}: {exc}") from exc
    if v < ZERO:
        raise BillingError(f"{field} must not be negative")
    return v


def net_amount_for(bill_amt: Decimal, discount: Decimal) -> Decimal:
    if discount > bill_amt:
        raise BillingError("Discount cannot exceed the bill amount")
    return money(bill_amt - discount)


def _draft_lines_for_table(table_no) -> list[LineData]:
    drafts = list(
        DraftLine.objects.select_for_update().filter(table_no=table_no).order_by("id")
    )
    if not drafts:
        raise BillingError(f"No open order lines for table {table_no}")
    return consolidate(line_from_draft(d) for d in drafts)


def insert_lines(bill: Bill, lines: list[LineData]) -> None:
    BillLine.objects.bulk_create(
        [
            BillLine(
                bill=bill,
                item_name=line.item_name,
                item_code=line.item_code,
                category_id_snapshot=line.category_id,
                qty=line.qty,
                rate=line.rate,
                amt=line.amt,
            )
            for line in lines
        ]
    )


def recompute_totals(bill: Bill) -> None:
    bill_amt, total_qty = totals(line_from_bill_line(l) for l in bill.lines.all())
    bill.bill_amt = bill_amt
    bill.total_qty = total_qty
    bill.net_amount = net_amount_for(bill_amt, money(bill.discount))


def save_bill(bill: Bill) -> None:
    bill.version = bill.version + 1
    bill.save()


def apply_sale_stock(
    *, bill: Bill, lines, warnings: WarningCollector, ctx: OperationContext | None
) -> None:
    """Reduce stock per line; each line is isolated in a savepoint."""
    for line in lines:
        try:
            with transaction.atomic():
                reduce_stock(
                    item_code=line.item_code,
                    item_name=line.item_name,
                    category_id=line.category_id,
                    quantity=line.qty,
                    rate=line.rate,
                    reference_no=bill.bill_no,
                    ctx=ctx,
                )
        except Exception as exc:
            logger.exception(
                "Stock reduction failed for bill line",
                extra={"bill_no": bill.bill_no, "item_name": line.item_name},
            )
            warnings.add(f"Stock not reduced for {line.item_name}: {exc}")


def _deposit_to_bank(*, bill: Bill, bank_account_id, ctx: OperationContext) -> None:
    entry = record_bill_payment(
        account_id=bank_account_id,
        bill_no=bill.bill_no,
        amount=bill.net_amount,
        table_name=table_label(bill.table_no),
        transaction_date=bill.bill_date,
        ctx=ctx,
    )
    bill.bank_account_id = bank_account_id
    bill.bank_entry = entry


def _paid_mode(paymode, bank_account_id) -> str:
    mode = (paymode or Bill.PAYMODE_CASH).upper().strip()
    if mode not in dict(Bill.PAYMODES) or mode in (Bill.PAYMODE_PENDING, Bill.PAYMODE_CREDIT):
        raise BillingError(f"Invalid paymode for a paid bill: {paymode}")
    if mode == Bill.PAYMODE_BANK and bank_account_id is None:
        raise BillingError("Bank account is required for paymode BANK")
    return mode


def _settle_paid(
    *,
    bill: Bill,
    cash_received,
    return_amount,
    mode: str,
    bank_account_id,
    ctx: OperationContext,
) -> None:
    received = money_arg(cash_received, field="cash_received", default=bill.net_amount)
    change = money_arg(
        return_amount,
        field="return_amount",
        default=max(received - bill.net_amount, ZERO),
    )

    bill.status = Bill.STATUS_PAID
    bill.paymode = mode
    bill.cash_received = received
    bill.return_amount = change
    bill.paid_amount = bill.net_amount

    if bank_account_id is None:
        return
    if bill.net_amount <= ZERO:
        # Nothing to deposit; keep the account on the bill for reporting.
        bill.bank_account_id = bank_account_id
        logger.info(
            "Skipping bank deposit for zero-value bill",
            extra={"bill_no": bill.bill_no, "bank_account_id": bank_account_id},
        )
        return
    _deposit_to_bank(bill=bill, bank_account_id=bank_account_id, ctx=ctx)


def _settle_credit(*, bill: Bill, customer: Customer) -> None:
    bill.status = Bill.STATUS_CREDIT
    bill.paymode = Bill.PAYMODE_CREDIT
    bill.customer = customer
    bill.cash_received = ZERO
    bill.return_amount = ZERO
    bill.paid_amount = ZERO


def _finish(bill: Bill, warnings: WarningCollector, ctx: OperationContext) -> None:
    apply_sale_stock(
        bill=bill,
        lines=[line_from_bill_line(l) for l in bill.lines.all()],
        warnings=warnings,
        ctx=ctx,
    )
    warnings.extend(release_table(table_no=bill.table_no, bill_no=bill.bill_no, sender=Bill))


def _new_bill_from_drafts(
    *, table_no, customer, waiter_id, discount, remarks, ctx: OperationContext
) -> tuple[Bill, list[LineData]]:
    if table_no is None:
        raise BillingError("table_no is required")
    lines = _draft_lines_for_table(table_no)
    bill_amt, total_qty = totals(lines)
    disc = money_arg(discount, field="discount")
    net = net_amount_for(bill_amt, disc)

    bill = Bill(
        table_no=table_no,
        customer=customer,
        waiter_id=waiter_id,
        bill_amt=bill_amt,
        discount=disc,
        net_amount=net,
        total_qty=total_qty,
        bill_date=timezone.localdate(),
        bill_time=_now_time(),
        remarks=remarks or "",
        created_by=ctx.employee_id,
    )
    return bill, lines


# ======================================================
# COMMANDS
# ======================================================

@transaction.atomic
def create_closed_bill(
    *,
    table_no,
    customer_id=None,
    waiter_id=None,
    remarks: str = "",
    ctx: OperationContext | None = None,
) -> ServiceResult:
    ctx = ctx or OperationContext.system()
    if closed_bill_for_table(table_no=table_no) is not None:
        raise InvalidBillTransitionError(
            f"Table {table_no} already has a CLOSE bill; add items to it instead"
        )

    bill, lines = _new_bill_from_drafts(
        table_no=table_no,
        customer=optional_customer(customer_id),
        waiter_id=waiter_id,
        discount=None,
        remarks=remarks,
        ctx=ctx,
    )
    bill.status = Bill.STATUS_CLOSE
    bill.paymode = Bill.PAYMODE_PENDING
    save_bill(bill)
    insert_lines(bill, lines)
    DraftLine.objects.filter(table_no=table_no).delete()

    logger.info(
        "Bill closed",
        extra={"bill_no": bill.bill_no, "table_no": table_no, "bill_amt": str(bill.bill_amt)},
    )
    return ServiceResult(value=bill)


@transaction.atomic
def create_paid_bill(
    *,
    table_no,
    discount=None,
    cash_received=None,
    return_amount=None,
    paymode: str = Bill.PAYMODE_CASH,
    bank_account_id=None,
    customer_id=None,
    waiter_id=None,
    remarks: str = "",
    ctx: OperationContext | None = None,
) -> ServiceResult:
    ctx = ctx or OperationContext.system()
    warnings = WarningCollector()
    mode = _paid_mode(paymode, bank_account_id)

    bill, lines = _new_bill_from_drafts(
        table_no=table_no,
        customer=optional_customer(customer_id),
        waiter_id=waiter_id,
        discount=discount,
        remarks=remarks,
        ctx=ctx,
    )
    # bill_no is needed for the bank reference, so persist before settling.
    save_bill(bill)
    _settle_paid(
        bill=bill,
        cash_received=cash_received,
        return_amount=return_amount,
        mode=mode,
        bank_account_id=bank_account_id,
        ctx=ctx,
    )
    bill.save()
    insert_lines(bill, lines)
    DraftLine.objects.filter(table_no=table_no).delete()

    _finish(bill, warnings, ctx)

    logger.info(
        "Paid bill created",
        extra={
            "bill_no": bill.bill_no,
            "table_no": table_no,
            "net_amount": str(bill.net_amount),
            "paymode": bill.paymode,
            "warnings": len(warnings),
        },
    )
    return warnings.result(bill)


@transaction.atomic
def create_credit_bill(
    *,
    table_no,
    customer_id,
    discount=None,
    waiter_id=None,
    remarks: str = "",
    ctx: OperationContext | None = None,
) -> ServiceResult:
    ctx = ctx or OperationContext.system()
    warnings = WarningCollector()
    customer = require_customer(customer_id)

    bill, lines = _new_bill_from_drafts(
        table_no=table_no,
        customer=customer,
        waiter_id=waiter_id,
        discount=discount,
        remarks=remarks,
        ctx=ctx,
    )
    _settle_credit(bill=bill, customer=customer)
    save_bill(bill)
    insert_lines(bill, lines)
    DraftLine.objects.filter(table_no=table_no).delete()

    _finish(bill, warnings, ctx)

    logger.info(
        "Credit bill created",
        extra={
            "bill_no": bill.bill_no,
            "customer_id": customer.id,
            "net_amount": str(bill.net_amount),
            "warnings": len(warnings),
        },
    )
    return warnings.result(bill)


@transaction.atomic
def mark_bill_as_paid(
    *,
    bill_no,
    discount=None,
    cash_received=None,
    return_amount=None,
    paymode: str = Bill.PAYMODE_CASH,
    bank_account_id=None,
    customer_id=None,
    ctx: OperationContext | None = None,
) -> ServiceResult:
    ctx = ctx or OperationContext.system()
    warnings = WarningCollector()
    bill = lock_bill(bill_no)

    if bill.status != Bill.STATUS_CLOSE:
        raise InvalidBillTransitionError(
            f"Bill {bill_no} is {bill.status}; only CLOSE bills can be marked PAID"
        )
    mode = _paid_mode(paymode, bank_account_id)

    if customer_id is not None:
        bill.customer = require_customer(customer_id)
    if discount is not None:
        bill.discount = money_arg(discount, field="discount")
    bill.net_amount = net_amount_for(money(bill.bill_amt), money(bill.discount))
    bill.bill_date = timezone.localdate()
    bill.bill_time = _now_time()

    _settle_paid(
        bill=bill,
        cash_received=cash_received,
        return_amount=return_amount,
        mode=mode,
        bank_account_id=bank_account_id,
        ctx=ctx,
    )
    save_bill(bill)
    _finish(bill, warnings, ctx)

    logger.info(
        "Bill marked as paid",
        extra={"bill_no": bill.bill_no, "paymode": bill.paymode, "warnings": len(warnings)},
    )
    return warnings.result(bill)


@transaction.atomic
def mark_bill_as_credit(
    *,
    bill_no,
    customer_id,
    discount=None,
    ctx: OperationContext | None = None,
) -> ServiceResult:
    ctx = ctx or OperationContext.system()
    warnings = WarningCollector()
    bill = lock_bill(bill_no)

    if bill.status != Bill.STATUS_CLOSE:
        raise InvalidBillTransitionError(
            f"Bill {bill_no} is {bill.status}; only CLOSE bills can be marked CREDIT"
        )

    customer = require_customer(customer_id)
    if discount is not None:
        bill.discount = money_arg(discount, field="discount")
    bill.net_amount = net_amount_for(money(bill.bill_amt), money(bill.discount))
    bill.bill_date = timezone.localdate()
    bill.bill_time = _now_time()

    _settle_credit(bill=bill, customer=customer)
    save_bill(bill)
    _finish(bill, warnings, ctx)

    logger.info(
        "Bill marked as credit",
        extra={"bill_no": bill.bill_no, "customer_id": customer.id, "warnings": len(warnings)},
    )
    return warnings.result(bill)


@transaction.atomic
def add_transactions_to_closed_bill(
    *, bill_no, ctx: OperationContext | None = None
) -> ServiceResult:
    """Merge the table's current drafts into its CLOSE bill."""
    bill = lock_bill(bill_no)
    if bill.status != Bill.STATUS_CLOSE:
        raise InvalidBillTransitionError(
            f"Bill {bill_no} is {bill.status}; items can only be added to a CLOSE bill"
        )

    incoming = _draft_lines_for_table(bill.table_no)
    existing = {(l.item_name, l.rate): l for l in bill.lines.select_for_update()}

    for line in incoming:
        current = existing.get(line.key)
        if current is None:
            insert_lines(bill, [line])
            continue
        current.qty = current.qty + line.qty
        current.amt = money(current.amt + line.amt)
        current.save(update_fields=["qty", "amt"])

    recompute_totals(bill)
    save_bill(bill)
    DraftLine.objects.filter(table_no=bill.table_no).delete()

    logger.info(
        "Items added to closed bill",
        extra={"bill_no": bill.bill_no, "lines_added": len(incoming), "bill_amt": str(bill.bill_amt)},
    )
    return ServiceResult(value=bill)


@transaction.atomic
def shift_bill_to_table(*, bill_no, target_table, ctx: OperationContext | None = None) -> Bill:
    bill = lock_bill(bill_no)
    if bill.status != Bill.STATUS_CLOSE:
        raise InvalidBillTransitionError("Only CLOSE bills can be shifted to another table")
    target = require_table(target_table)
    if bill.table_no == target:
        raise BillingError("Bill is already on that table")

    occupied = closed_bill_for_table(table_no=target)
    if occupied is not None:
        raise InvalidBillTransitionError(
            f"Table {target} already has CLOSE bill #{occupied.bill_no}"
        )

    source = bill.table_no
    bill.table_no = target
    save_bill(bill)

    logger.info(
        "Bill shifted",
        extra={"bill_no": bill.bill_no, "source_table": source, "target_table": bill.table_no},
    )
    return bill


@transaction.atomic
def shift_table(*, source_table, target_table, ctx: OperationContext | None = None) -> dict:
    """Move a table's open order (draft lines and CLOSE bill) to another table."""
    source_table = require_table(source_table)
    target_table = require_table(target_table)

    bill = closed_bill_for_table(table_no=source_table)
    if bill is not None:
        shift_bill_to_table(bill_no=bill.bill_no, target_table=target_table, ctx=ctx)

    moved = 0
    if DraftLine.objects.filter(table_no=source_table).exists():
        moved = shift_draft_lines(source_table=source_table, target_table=target_table)

    if bill is None and not moved:
        raise BillingError(f"Table {source_table} has nothing to shift")

    return {
        "source_table": source_table,
        "target_table": target_table,
        "bill_no": bill.bill_no if bill else None,
        "draft_lines_moved": moved,
    }


# ======================================================
# QUERIES
# ======================================================

def parse_bill_date(value) -> date:
    """Accept a date, ISO string, or the display format (dd-mm-yyyy by default)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value or "").strip()
    fmt = getattr(settings, "BILL_DATE_DISPLAY_FORMAT", "%d-%m-%Y")
    for candidate in (fmt, "%Y-%m-%d"):
        try:
            return datetime.strptime(raw, candidate).date()
        except ValueError:
            continue
    raise BillingError(f"Invalid bill date: {value!r}")


def get_bill(*, bill_no) -> Bill:
    try:
        return Bill.objects.prefetch_related("lines").get(pk=bill_no)
    except Bill.DoesNotExist as exc:
        raise BillNotFoundError(f"Bill {bill_no} not found") from exc


def closed_bill_for_table(*, table_no) -> Bill | None:
    return (
        Bill.objects.filter(table_no=table_no, status=Bill.STATUS_CLOSE)
        .order_by("-bill_no")
        .first()
    )


def bills_by_status(*, status: str):
    return Bill.objects.filter(status=status).order_by("-bill_no")


def bills_by_date(*, bill_date=None, start_date=None, end_date=None):
    qs = Bill.objects.all()
    if bill_date is not None:
        qs = qs.filter(bill_date=parse_bill_date(bill_date))
    if start_date is not None:
        qs = qs.filter(bill_date__gte=parse_bill_date(start_date))
    if end_date is not None:
        qs = qs.filter(bill_date__lte=parse_bill_date(end_date))
    return qs.order_by("bill_date", "bill_no")


def bills_by_customer(*, customer_id):
    return Bill.objects.filter(customer_id=customer_id).order_by("-bill_no")


def credit_bills_for_customer(*, customer_id):
    return bills_by_customer(customer_id=customer_id).filter(status=Bill.STATUS_CREDIT)


def last_paid_bill() -> Bill | None:
    return Bill.objects.filter(status=Bill.STATUS_PAID).order_by("-bill_no").first()
