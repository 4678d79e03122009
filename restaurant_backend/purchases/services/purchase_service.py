# purchases/services/purchase_service.py

"""
======================================================
PATH: purchases/services/purchase_service.py
======================================================
PURCHASE BILL SERVICES

Rules:
- Header + lines are strict: validation runs before the first write.
- net_amount = amount + gst + other_tax, amount = sum(line.amount).
- Stock intake is lenient: each line with a category runs add_stock in
  its own savepoint; failures come back as ServiceResult warnings.
- paid_amount moves only through supplier payments; status follows it.

update_purchase_bill():
1. validate the new lines / header (no writes yet)
2. reject when the new net_amount falls below what is already paid
3. snapshot + delete the old lines, reverse their stock intake
4. insert the new lines, recompute totals and status
5. add_stock() for the new lines
"""

from __future__ import annotations

from decimal import Decimal
import logging

from django.db import transaction

from core.context import OperationContext
from core.exceptions import EngineValidationError, EntityNotFoundError
from core.money import ZERO, money, quantity, tolerance
from core.results import ServiceResult, WarningCollector
from inventory.models import StockLedgerEntry
from inventory.services.stock_ledger import add_stock, reverse_stock_for_purchase
from masters.models import Supplier
from masters.services import resolve_item
from purchases.models import PurchaseBill, PurchaseLine


logger = logging.getLogger("purchases")

ZERO_QTY = Decimal("0.000")


class PurchaseBillError(EngineValidationError):
    pass


class PurchaseBillNotFoundError(PurchaseBillError, EntityNotFoundError):
    pass


def _money_arg(value, *, field: str) -> Decimal:
    try:
        amount = money(value)
    except ValueError as exc:
        raise PurchaseBillError(f"{field}: {exc}") from exc
    if amount < ZERO:
        raise PurchaseBillError(f"{field} cannot be negative")
    return amount


def _parse_lines(lines) -> list[dict]:
    if not lines:
        raise PurchaseBillError("At least one line is required")

    parsed = []
    for raw in lines:
        name = (raw.get("item_name") or "").strip()
        if not name:
            raise PurchaseBillError("item_name is required on every line")
        try:
            qty = quantity(raw.get("qty"))
            rate = money(raw.get("rate"))
        except ValueError as exc:
            raise PurchaseBillError(f"{name}: {exc}") from exc
        if qty <= ZERO_QTY:
            raise PurchaseBillError(f"{name}: qty must be greater than zero")
        if rate < ZERO:
            raise PurchaseBillError(f"{name}: rate must not be negative")

        item_code = raw.get("item_code")
        category_id = raw.get("category_id")
        if item_code is None or category_id is None:
            item = resolve_item(name, category_id=category_id)
            if item is not None:
                item_code = item.item_code if item_code is None else item_code
                category_id = item.category_id if category_id is None else category_id

        parsed.append(
            {
                "item_name": name,
                "item_code": item_code,
                "category_id": category_id,
                "qty": qty,
                "rate": rate,
                "amount": money(qty * rate),
            }
        )
    return parsed


def _totals(parsed) -> tuple[Decimal, Decimal]:
    amount = money(sum((line["amount"] for line in parsed), ZERO))
    total_qty = quantity(sum((line["qty"] for line in parsed), ZERO_QTY))
    return amount, total_qty


def _line_from_row(row: PurchaseLine) -> dict:
    return {
        "item_name": row.item_name,
        "item_code": row.item_code,
        "category_id": row.category_id_snapshot,
        "qty": row.qty,
        "rate": row.rate,
        "amount": row.amount,
    }


def _insert_lines(bill: PurchaseBill, parsed) -> None:
    PurchaseLine.objects.bulk_create(
        [
            PurchaseLine(
                bill=bill,
                item_name=line["item_name"],
                item_code=line["item_code"],
                category_id_snapshot=line["category_id"],
                qty=line["qty"],
                rate=line["rate"],
                amount=line["amount"],
            )
            for line in parsed
        ]
    )


def _move_stock(*, bill: PurchaseBill, parsed, move, verb: str, warnings, ctx) -> None:
    """Run one stock move per categorised line, each in its own savepoint."""
    for line in parsed:
        if line["category_id"] is None:
            continue
        try:
            with transaction.atomic():
                move(
                    item_code=line["item_code"],
                    item_name=line["item_name"],
                    category_id=line["category_id"],
                    quantity=line["qty"],
                    rate=line["rate"],
                    reference_no=bill.id,
                    ctx=ctx,
                )
        except Exception as exc:
            logger.exception(
                f"Stock {verb} failed for purchase line",
                extra={"purchase_bill_id": bill.id, "item_name": line["item_name"]},
            )
            warnings.add(f"Stock not {verb} for {line['item_name']}: {exc}")


def _intake(**kwargs) -> None:
    add_stock(reference_type=StockLedgerEntry.ReferenceType.PURCHASE_BILL, **kwargs)


def payment_status(bill: PurchaseBill) -> str:
    if money(bill.paid_amount) >= money(bill.net_amount) - tolerance():
        return PurchaseBill.STATUS_PAID
    if bill.paid_amount > ZERO:
        return PurchaseBill.STATUS_PARTIALLY_PAID
    return PurchaseBill.STATUS_PENDING


def save_payment_state(bill: PurchaseBill) -> None:
    bill.status = payment_status(bill)
    bill.version = bill.version + 1
    bill.save(update_fields=["paid_amount", "status", "version", "updated_at"])


def _lock_bill(bill_id) -> PurchaseBill:
    try:
        return PurchaseBill.objects.select_for_update().get(pk=bill_id)
    except PurchaseBill.DoesNotExist as exc:
        raise PurchaseBillNotFoundError(f"Purchase bill {bill_id} not found") from exc


def get_purchase_bill(*, bill_id) -> PurchaseBill:
    try:
        return (
            PurchaseBill.objects.select_related("supplier")
            .prefetch_related("lines")
            .get(pk=bill_id)
        )
    except PurchaseBill.DoesNotExist as exc:
        raise PurchaseBillNotFoundError(f"Purchase bill {bill_id} not found") from exc


@transaction.atomic
def create_purchase_bill(
    *,
    supplier_id,
    lines,
    gst=None,
    other_tax=None,
    bill_date=None,
    reference_no: str = "",
    remarks: str = "",
    ctx: OperationContext | None = None,
) -> ServiceResult:
    """
    lines: iterable of mappings with item_name, qty, rate and optional
    item_code / category_id (resolved from the item master when missing).
    """
    ctx = ctx or OperationContext.system()
    warnings = WarningCollector()

    supplier = Supplier.objects.filter(pk=supplier_id).first()
    if supplier is None:
        raise PurchaseBillError(f"Supplier {supplier_id} not found")

    parsed = _parse_lines(lines)
    gst_value = _money_arg(gst, field="gst")
    other_value = _money_arg(other_tax, field="other_tax")
    amount, total_qty = _totals(parsed)

    bill = PurchaseBill(
        supplier=supplier,
        reference_no=(reference_no or "").strip(),
        amount=amount,
        gst=gst_value,
        other_tax=other_value,
        net_amount=money(amount + gst_value + other_value),
        total_qty=total_qty,
        remarks=remarks or "",
        created_by=ctx.employee_id,
    )
    if bill_date is not None:
        bill.bill_date = bill_date
    bill.save()

    _insert_lines(bill, parsed)
    _move_stock(bill=bill, parsed=parsed, move=_intake, verb="added", warnings=warnings, ctx=ctx)

    logger.info(
        "Purchase bill created",
        extra={
            "purchase_bill_id": bill.id,
            "supplier_id": supplier.id,
            "net_amount": str(bill.net_amount),
            "lines": len(parsed),
            "warnings": len(warnings),
        },
    )
    return warnings.result(bill)


@transaction.atomic
def update_purchase_bill(
    *,
    bill_id,
    lines,
    supplier_id=None,
    gst=None,
    other_tax=None,
    bill_date=None,
    reference_no: str | None = None,
    remarks: str | None = None,
    ctx: OperationContext | None = None,
) -> ServiceResult:
    """
    Replace a purchase bill's lines and, optionally, its header fields.

    gst / other_tax / reference_no / remarks left as None keep their
    current values. The supplier can only change while nothing is paid.
    """
    ctx = ctx or OperationContext.system()
    warnings = WarningCollector()

    parsed = _parse_lines(lines)
    bill = _lock_bill(bill_id)

    if supplier_id is not None and supplier_id != bill.supplier_id:
        if bill.paid_amount > ZERO:
            raise PurchaseBillError(
                f"Purchase bill #{bill.id} has payments; its supplier cannot change"
            )
        supplier = Supplier.objects.filter(pk=supplier_id).first()
        if supplier is None:
            raise PurchaseBillError(f"Supplier {supplier_id} not found")
        bill.supplier = supplier

    gst_value = _money_arg(gst, field="gst") if gst is not None else money(bill.gst)
    other_value = (
        _money_arg(other_tax, field="other_tax") if other_tax is not None else money(bill.other_tax)
    )
    amount, total_qty = _totals(parsed)
    net = money(amount + gst_value + other_value)
    if net < money(bill.paid_amount) - tolerance():
        raise PurchaseBillError(
            f"Purchase bill #{bill.id} already has {bill.paid_amount} paid, "
            f"more than the new net amount {net}"
        )

    old_lines = [_line_from_row(row) for row in bill.lines.all()]
    PurchaseLine.objects.filter(bill_id=bill.id).delete()
    _move_stock(
        bill=bill,
        parsed=old_lines,
        move=reverse_stock_for_purchase,
        verb="reversed",
        warnings=warnings,
        ctx=ctx,
    )

    _insert_lines(bill, parsed)
    bill.amount = amount
    bill.gst = gst_value
    bill.other_tax = other_value
    bill.net_amount = net
    bill.total_qty = total_qty
    if bill_date is not None:
        bill.bill_date = bill_date
    if reference_no is not None:
        bill.reference_no = reference_no.strip()
    if remarks is not None:
        bill.remarks = remarks
    bill.status = payment_status(bill)
    bill.version = bill.version + 1
    bill.save()

    _move_stock(bill=bill, parsed=parsed, move=_intake, verb="added", warnings=warnings, ctx=ctx)

    logger.info(
        "Purchase bill updated",
        extra={
            "purchase_bill_id": bill.id,
            "old_lines": len(old_lines),
            "new_lines": len(parsed),
            "net_amount": str(bill.net_amount),
            "status": bill.status,
            "warnings": len(warnings),
        },
    )
    return warnings.result(bill)


def purchase_bills_for_supplier(*, supplier_id, status: str | None = None):
    qs = PurchaseBill.objects.filter(supplier_id=supplier_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("bill_date", "id")


def outstanding_purchase_bills(*, supplier_id=None):
    qs = PurchaseBill.objects.exclude(status=PurchaseBill.STATUS_PAID)
    if supplier_id is not None:
        qs = qs.filter(supplier_id=supplier_id)
    return qs.select_related("supplier").order_by("bill_date", "id")
