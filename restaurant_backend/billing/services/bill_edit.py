# billing/services/bill_edit.py

"""
======================================================
PATH: billing/services/bill_edit.py
======================================================
BILL EDIT / REVERSAL

Replaces a bill's lines and keeps stock consistent:

1. snapshot current lines as plain LineData records
2. bulk-delete the bill's lines
3. reload the bill
4. reverse_stock_for_sale() for every old line (finalized bills only)
5. consolidate + insert the new lines
6. recompute totals and apply header changes
7. reduce_stock() for the new lines (finalized bills only)

Stock steps are lenient: a failing line is rolled back to its savepoint,
logged, and reported as a warning. Everything else is strict.

Net effect on stock: stock_after == stock_before_original_sale - effect(new lines).
"""

from __future__ import annotations

import logging

from django.db import transaction

from billing.models import Bill, BillLine
from billing.services import bill_service
from billing.services.consolidation import (
    consolidate,
    line_from_bill_line,
    line_from_values,
    totals,
)
from billing.services.errors import BillingError, InvalidBillTransitionError
from core.context import OperationContext
from core.money import ZERO, money
from core.results import WarningCollector
from inventory.services.stock_ledger import reverse_stock_for_sale


logger = logging.getLogger("billing")


def _parse_lines(lines) -> list:
    if not lines:
        raise BillingError("At least one line is required")

    parsed = []
    for raw in lines:
        name = (raw.get("item_name") or "").strip()
        if not name:
            raise BillingError("item_name is required on every line")
        try:
            line = line_from_values(
                item_name=name,
                qty=raw.get("qty"),
                rate=raw.get("rate"),
                item_code=raw.get("item_code"),
                category_id=raw.get("category_id"),
            )
        except ValueError as exc:
            raise BillingError(f"{name}: {exc}") from exc
        if line.qty <= 0:
            raise BillingError(f"{name}: qty must be greater than zero")
        if line.rate < ZERO:
            raise BillingError(f"{name}: rate must not be negative")
        parsed.append(line)
    return consolidate(parsed)


def _reverse_old_lines(*, bill: Bill, old_lines, warnings: WarningCollector, ctx) -> None:
    for line in old_lines:
        try:
            with transaction.atomic():
                reverse_stock_for_sale(
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
                "Stock reversal failed for bill line",
                extra={"bill_no": bill.bill_no, "item_name": line.item_name},
            )
            warnings.add(f"Stock not reversed for {line.item_name}: {exc}")


@transaction.atomic
def update_bill_with_transactions(
    *,
    bill_no,
    lines,
    waiter_id=None,
    customer_id=None,
    discount=None,
    cash_received=None,
    return_amount=None,
    status: str | None = None,
    ctx: OperationContext | None = None,
):
    """
    Replace a bill's lines (and optionally header fields).

    lines: iterable of mappings with item_name, qty, rate and optional
    item_code / category_id.
    status: PAID or CREDIT, only for bills that are already PAID / CREDIT.
    """
    ctx = ctx or OperationContext.system()
    warnings = WarningCollector()

    # Validate everything before the first write.
    new_lines = _parse_lines(lines)
    bill = bill_service.lock_bill(bill_no)
    finalized = bill.is_final

    target_status = (status or bill.status).upper().strip()
    if status is not None:
        if not finalized:
            raise InvalidBillTransitionError(
                "Use mark_bill_as_paid / mark_bill_as_credit to finalize a CLOSE bill"
            )
        if target_status not in Bill.FINAL_STATUSES:
            raise InvalidBillTransitionError(f"Invalid status for an edit: {status}")

    customer = (
        bill_service.require_customer(customer_id) if customer_id is not None else bill.customer
    )
    if target_status == Bill.STATUS_CREDIT and customer is None:
        raise BillingError("Customer is required for a credit bill")

    new_discount = (
        bill_service.money_arg(discount, field="discount")
        if discount is not None
        else money(bill.discount)
    )
    new_amt, _ = totals(new_lines)
    bill_service.net_amount_for(new_amt, new_discount)

    # 1-3. snapshot, delete, reload
    old_lines = [line_from_bill_line(l) for l in bill.lines.all()]
    BillLine.objects.filter(bill_id=bill.bill_no).delete()
    bill.refresh_from_db()

    # 4. give back what the original sale took
    if finalized:
        _reverse_old_lines(bill=bill, old_lines=old_lines, warnings=warnings, ctx=ctx)

    # 5-6. new lines + totals + header
    bill_service.insert_lines(bill, new_lines)
    bill.discount = new_discount
    bill.customer = customer
    if waiter_id is not None:
        bill.waiter_id = waiter_id
    bill_service.recompute_totals(bill)

    previous_status = bill.status
    bill.status = target_status
    if target_status == Bill.STATUS_PAID:
        bill.paymode = (
            bill.paymode if previous_status == Bill.STATUS_PAID else Bill.PAYMODE_CASH
        )
        bill.paid_amount = bill.net_amount
        bill.cash_received = bill_service.money_arg(
            cash_received, field="cash_received", default=bill.net_amount
        )
        bill.return_amount = bill_service.money_arg(
            return_amount,
            field="return_amount",
            default=max(bill.cash_received - bill.net_amount, ZERO),
        )
    elif target_status == Bill.STATUS_CREDIT:
        bill.paymode = Bill.PAYMODE_CREDIT
        if previous_status != Bill.STATUS_CREDIT:
            bill.paid_amount = ZERO
        elif bill.paid_amount > bill.net_amount:
            warnings.add(
                f"Bill {bill.bill_no} already has {bill.paid_amount} allocated, "
                f"more than the new net amount {bill.net_amount}"
            )

    if (
        bill.bank_entry_id is not None
        and bill.bank_entry.deposit != bill.net_amount
    ):
        warnings.add(
            f"Bank deposit for bill {bill.bill_no} ({bill.bank_entry.deposit}) "
            f"no longer matches net amount {bill.net_amount}"
        )

    bill_service.save_bill(bill)

    # 7. apply the new sale
    if finalized:
        bill_service.apply_sale_stock(
            bill=bill, lines=new_lines, warnings=warnings, ctx=ctx
        )

    logger.info(
        "Bill updated with new lines",
        extra={
            "bill_no": bill.bill_no,
            "old_lines": len(old_lines),
            "new_lines": len(new_lines),
            "bill_amt": str(bill.bill_amt),
            "status": bill.status,
            "warnings": len(warnings),
        },
    )
    return warnings.result(bill)
