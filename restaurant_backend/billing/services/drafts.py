# billing/services/drafts.py

"""
======================================================
PATH: billing/services/drafts.py
======================================================
OPEN-ORDER (DRAFT) SERVICES

Rules:
- (table_no, item_name, rate) identifies a line; adding again merges qty/amt.
- A quantity update to <= 0 deletes the line.
- print_qty accrues only when the incoming print quantity is > 0.
  When the caller does not pass one, kitchen items (no stock-tracked
  category) queue their full qty for printing; stock items queue nothing.
"""

from __future__ import annotations

from decimal import Decimal
import logging

from django.db import transaction
from django.db.models import Count, Sum

from billing.models import DraftLine
from billing.services.errors import BillingError, DraftLineNotFoundError
from core.context import OperationContext
from core.money import money, quantity
from masters.services import is_category_stock_enabled, resolve_item


logger = logging.getLogger("billing")

ZERO_QTY = Decimal("0.000")


def require_table(table_no) -> int:
    try:
        value = int(table_no)
    except (TypeError, ValueError) as exc:
        raise BillingError("table_no is required") from exc
    if value <= 0:
        raise BillingError("table_no must be positive")
    return value


def _validated_qty_rate(qty, rate) -> tuple[Decimal, Decimal]:
    try:
        q = quantity(qty)
        r = money(rate)
    except ValueError as exc:
        raise BillingError(str(exc)) from exc
    if q <= ZERO_QTY:
        raise BillingError("qty must be greater than zero")
    if r < Decimal("0.00"):
        raise BillingError("rate must not be negative")
    return q, r


@transaction.atomic
def create_draft_line(
    *,
    table_no,
    item_name: str,
    qty,
    rate,
    print_qty=None,
    waiter_id=None,
    ctx: OperationContext | None = None,
) -> DraftLine:
    ctx = ctx or OperationContext.system()
    table = require_table(table_no)
    name = (item_name or "").strip()
    if not name:
        raise BillingError("item_name is required")
    q, r = _validated_qty_rate(qty, rate)

    item = resolve_item(name)
    category_id = item.category_id if item else None

    if print_qty is None:
        incoming_print = ZERO_QTY if is_category_stock_enabled(category_id) else q
    else:
        try:
            incoming_print = quantity(print_qty)
        except ValueError as exc:
            raise BillingError(str(exc)) from exc

    line = (
        DraftLine.objects.select_for_update()
        .filter(table_no=table, item_name=name, rate=r)
        .first()
    )

    if line is None:
        line = DraftLine.objects.create(
            table_no=table,
            item_name=name,
            item_code=item.item_code if item else None,
            category_id_snapshot=category_id,
            qty=q,
            rate=r,
            amt=money(q * r),
            print_qty=incoming_print if incoming_print > ZERO_QTY else ZERO_QTY,
            waiter_id=waiter_id,
            created_by=ctx.employee_id,
        )
        logger.info(
            "Draft line created",
            extra={"table_no": table, "item_name": name, "qty": str(q), "rate": str(r)},
        )
        return line

    line.qty = line.qty + q
    line.amt = money(line.qty * line.rate)
    if incoming_print > ZERO_QTY:
        line.print_qty = line.print_qty + incoming_print
    if waiter_id is not None:
        line.waiter_id = waiter_id
    line.save(update_fields=["qty", "amt", "print_qty", "waiter_id", "updated_at"])

    logger.info(
        "Draft line merged",
        extra={"draft_line_id": line.id, "table_no": table, "qty": str(line.qty)},
    )
    return line


@transaction.atomic
def update_draft_quantity(*, line_id, qty) -> DraftLine | None:
    """Set the line's qty. Returns None when the line was deleted (qty <= 0)."""
    try:
        line = DraftLine.objects.select_for_update().get(pk=line_id)
    except DraftLine.DoesNotExist as exc:
        raise DraftLineNotFoundError(f"Draft line {line_id} not found") from exc

    try:
        q = quantity(qty)
    except ValueError as exc:
        raise BillingError(str(exc)) from exc

    if q <= ZERO_QTY:
        line.delete()
        logger.info("Draft line removed", extra={"draft_line_id": line_id})
        return None

    line.qty = q
    line.amt = money(q * line.rate)
    if line.print_qty > q:
        line.print_qty = q
    line.save(update_fields=["qty", "amt", "print_qty", "updated_at"])
    return line


@transaction.atomic
def delete_draft_line(*, line_id) -> None:
    deleted, _ = DraftLine.objects.filter(pk=line_id).delete()
    if not deleted:
        raise DraftLineNotFoundError(f"Draft line {line_id} not found")


@transaction.atomic
def clear_table(*, table_no) -> int:
    deleted, _ = DraftLine.objects.filter(table_no=table_no).delete()
    if deleted:
        logger.info("Draft lines cleared", extra={"table_no": table_no, "deleted": deleted})
    return deleted


@transaction.atomic
def shift_draft_lines(*, source_table, target_table) -> int:
    """Move every draft line to target_table, merging on (item_name, rate)."""
    source = require_table(source_table)
    target = require_table(target_table)
    if source == target:
        raise BillingError("Source and target table are the same")

    moved = 0
    for line in DraftLine.objects.select_for_update().filter(table_no=source).order_by("id"):
        existing = (
            DraftLine.objects.select_for_update()
            .filter(table_no=target, item_name=line.item_name, rate=line.rate)
            .first()
        )
        if existing is None:
            line.table_no = target
            line.save(update_fields=["table_no", "updated_at"])
        else:
            existing.qty = existing.qty + line.qty
            existing.amt = money(existing.qty * existing.rate)
            existing.print_qty = existing.print_qty + line.print_qty
            existing.save(update_fields=["qty", "amt", "print_qty", "updated_at"])
            line.delete()
        moved += 1

    logger.info(
        "Draft lines shifted",
        extra={"source_table": source, "target_table": target, "moved": moved},
    )
    return moved


def lines_for_table(*, table_no):
    return DraftLine.objects.filter(table_no=table_no).order_by("id")


def printable_lines(*, table_no):
    return lines_for_table(table_no=table_no).filter(print_qty__gt=ZERO_QTY)


@transaction.atomic
def reset_print_qty(*, table_no) -> int:
    return DraftLine.objects.filter(table_no=table_no, print_qty__gt=ZERO_QTY).update(
        print_qty=ZERO_QTY
    )


def table_totals(*, table_no) -> dict:
    agg = lines_for_table(table_no=table_no).aggregate(
        lines=Count("id"), qty=Sum("qty"), amt=Sum("amt")
    )
    return {
        "table_no": table_no,
        "lines": agg["lines"] or 0,
        "qty": quantity(agg["qty"] or 0),
        "amt": money(agg["amt"] or 0),
    }


def open_tables() -> list[int]:
    return list(
        DraftLine.objects.values_list("table_no", flat=True).distinct().order_by("table_no")
    )
