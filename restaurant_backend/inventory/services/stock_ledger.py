# inventory/services/stock_ledger.py

"""
======================================================
PATH: inventory/services/stock_ledger.py
======================================================
STOCK LEDGER SERVICES

Purpose:
- Post purchase intake, sale reduction and the reversals used by bill edits
  against a StockItem.
- Manual adjustment to an arbitrary target level.
- Stock read queries (current level, low/out of stock, history).

Rules:
- add / reduce / reverse are gated by the category's stock_tracked flag.
  An untracked (or unknown) category is a silent no-op returning None.
- adjust_stock bypasses the gate.
- StockItem is resolved by item_code, then by case-insensitive name,
  and created lazily when neither matches.
- Negative stock is allowed and logged as a warning.
- Every write locks the StockItem row and bumps its version.
"""

from __future__ import annotations

from decimal import Decimal
import logging

from django.db import transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from core.context import OperationContext
from core.exceptions import EngineValidationError
from core.money import money, quantity as to_quantity
from inventory.models import StockItem, StockLedgerEntry
from masters.services import is_category_stock_enabled


logger = logging.getLogger("inventory")

TT = StockLedgerEntry.TransactionType
RT = StockLedgerEntry.ReferenceType

ZERO_QTY = Decimal("0.000")


class StockLedgerError(EngineValidationError):
    pass


# ======================================================
# INTERNALS
# ======================================================

def _require_quantity(value) -> Decimal:
    try:
        qty = to_quantity(value)
    except ValueError as exc:
        raise StockLedgerError(str(exc)) from exc
    if qty <= ZERO_QTY:
        raise StockLedgerError("quantity must be greater than zero")
    return qty


def _lock_or_create_item(*, item_code, item_name, category_id) -> StockItem:
    name = (item_name or "").strip()
    if item_code is None and not name:
        raise StockLedgerError("item_code or item_name is required")

    qs = StockItem.objects.select_for_update()

    item = None
    if item_code is not None:
        item = qs.filter(item_code=item_code).first()
    if item is None and name:
        item = qs.filter(item_name__iexact=name).order_by("id").first()
        if item is not None and item.item_code is None and item_code is not None:
            item.item_code = item_code
            item.save(update_fields=["item_code", "updated_at"])

    if item is None:
        item = StockItem.objects.create(
            item_code=item_code,
            item_name=name or f"Item {item_code}",
            category_id=category_id,
        )
        logger.info(
            "Stock item created",
            extra={"stock_item_id": item.id, "item_code": item_code, "item_name": name},
        )
    elif item.category_id is None and category_id is not None:
        item.category_id = category_id
        item.save(update_fields=["category", "updated_at"])

    return item


def _post(
    *,
    item: StockItem,
    transaction_type: str,
    reference_type: str,
    qty: Decimal,
    new_stock: Decimal,
    rate,
    reference_no,
    remarks: str,
    category_id,
    ctx: OperationContext | None,
) -> StockLedgerEntry:
    ctx = ctx or OperationContext.system()
    previous = item.stock
    rate_value = money(rate)

    entry = StockLedgerEntry.objects.create(
        item=item,
        item_code=item.item_code,
        item_name=item.item_name,
        category_id_snapshot=category_id if category_id is not None else item.category_id,
        transaction_type=transaction_type,
        quantity=qty,
        rate=rate_value,
        amount=money(qty * rate_value),
        previous_stock=previous,
        new_stock=new_stock,
        reference_type=reference_type,
        reference_no="" if reference_no is None else str(reference_no),
        transaction_date=timezone.localdate(),
        remarks=remarks,
        created_by=ctx.employee_id,
    )

    item.stock = new_stock
    item.version = item.version + 1
    item.save(update_fields=["stock", "version", "updated_at"])

    if new_stock < ZERO_QTY:
        logger.warning(
            "Stock went negative",
            extra={
                "stock_item_id": item.id,
                "item_name": item.item_name,
                "stock": str(new_stock),
                "transaction_type": transaction_type,
            },
        )

    logger.info(
        "Stock ledger entry posted",
        extra={
            "entry_id": entry.id,
            "stock_item_id": item.id,
            "transaction_type": transaction_type,
            "quantity": str(qty),
            "previous_stock": str(previous),
            "new_stock": str(new_stock),
            "reference_no": entry.reference_no,
        },
    )
    return entry


def _gated_move(
    *,
    direction: int,
    transaction_type: str,
    reference_type: str,
    item_code,
    item_name,
    category_id,
    qty,
    rate,
    reference_no,
    remarks: str,
    ctx: OperationContext | None,
) -> StockLedgerEntry | None:
    if not is_category_stock_enabled(category_id):
        logger.debug(
            "Stock skipped for untracked category",
            extra={"item_name": item_name, "category_id": category_id},
        )
        return None

    amount = _require_quantity(qty)
    item = _lock_or_create_item(
        item_code=item_code, item_name=item_name, category_id=category_id
    )
    return _post(
        item=item,
        transaction_type=transaction_type,
        reference_type=reference_type,
        qty=amount,
        new_stock=item.stock + direction * amount,
        rate=rate,
        reference_no=reference_no,
        remarks=remarks,
        category_id=category_id,
        ctx=ctx,
    )


# ======================================================
# COMMANDS
# ======================================================

@transaction.atomic
def add_stock(
    *,
    item_code=None,
    item_name: str,
    category_id,
    quantity,
    rate=None,
    reference_no=None,
    reference_type: str = RT.PURCHASE_BILL,
    ctx: OperationContext | None = None,
) -> StockLedgerEntry | None:
    return _gated_move(
        direction=1,
        transaction_type=TT.PURCHASE,
        reference_type=reference_type,
        item_code=item_code,
        item_name=item_name,
        category_id=category_id,
        qty=quantity,
        rate=rate,
        reference_no=reference_no,
        remarks=f"Stock added via Purchase Bill #{reference_no}",
        ctx=ctx,
    )


@transaction.atomic
def reduce_stock(
    *,
    item_code=None,
    item_name: str,
    category_id,
    quantity,
    rate=None,
    reference_no=None,
    ctx: OperationContext | None = None,
) -> StockLedgerEntry | None:
    return _gated_move(
        direction=-1,
        transaction_type=TT.SALE,
        reference_type=RT.SALES_BILL,
        item_code=item_code,
        item_name=item_name,
        category_id=category_id,
        qty=quantity,
        rate=rate,
        reference_no=reference_no,
        remarks=f"Stock reduced via Sales Bill #{reference_no}",
        ctx=ctx,
    )


@transaction.atomic
def reverse_stock_for_sale(
    *,
    item_code=None,
    item_name: str,
    category_id,
    quantity,
    rate=None,
    reference_no=None,
    ctx: OperationContext | None = None,
) -> StockLedgerEntry | None:
    """Give back stock taken by a sale. Used by the bill edit protocol only."""
    return _gated_move(
        direction=1,
        transaction_type=TT.SALE_REVERSAL,
        reference_type=RT.SALES_BILL,
        item_code=item_code,
        item_name=item_name,
        category_id=category_id,
        qty=quantity,
        rate=rate,
        reference_no=reference_no,
        remarks=f"Stock reversed for Bill #{reference_no} edit",
        ctx=ctx,
    )


@transaction.atomic
def reverse_stock_for_purchase(
    *,
    item_code=None,
    item_name: str,
    category_id,
    quantity,
    rate=None,
    reference_no=None,
    ctx: OperationContext | None = None,
) -> StockLedgerEntry | None:
    """Take back stock added by a purchase bill that is being edited."""
    return _gated_move(
        direction=-1,
        transaction_type=TT.PURCHASE_REVERSAL,
        reference_type=RT.PURCHASE_BILL,
        item_code=item_code,
        item_name=item_name,
        category_id=category_id,
        qty=quantity,
        rate=rate,
        reference_no=reference_no,
        remarks=f"Stock reversed for Purchase Bill #{reference_no} edit",
        ctx=ctx,
    )


@transaction.atomic
def adjust_stock(
    *,
    item_code=None,
    item_name: str,
    category_id=None,
    new_stock,
    remarks: str = "",
    ctx: OperationContext | None = None,
) -> StockLedgerEntry | None:
    """
    Set stock to new_stock and record abs(delta) as an ADJUSTMENT.
    Not gated by category. Returns None when nothing changes.
    """
    try:
        target = to_quantity(new_stock)
    except ValueError as exc:
        raise StockLedgerError(str(exc)) from exc

    item = _lock_or_create_item(
        item_code=item_code, item_name=item_name, category_id=category_id
    )
    delta = target - item.stock
    if delta == ZERO_QTY:
        return None

    return _post(
        item=item,
        transaction_type=TT.ADJUSTMENT,
        reference_type=RT.ADJUSTMENT,
        qty=abs(delta),
        new_stock=target,
        rate=None,
        reference_no=None,
        remarks=remarks or "Manual stock adjustment",
        category_id=category_id,
        ctx=ctx,
    )


# ======================================================
# QUERIES
# ======================================================

def get_current_stock(*, item_code=None, item_name: str | None = None) -> Decimal:
    qs = StockItem.objects.all()
    item = None
    if item_code is not None:
        item = qs.filter(item_code=item_code).first()
    if item is None and item_name:
        item = qs.filter(item_name__iexact=item_name.strip()).order_by("id").first()
    return item.stock if item else ZERO_QTY


def list_stock_items(*, category_id=None):
    qs = StockItem.objects.select_related("category")
    if category_id is not None:
        qs = qs.filter(category_id=category_id)
    return qs.order_by("item_name")


def low_stock_items():
    return StockItem.objects.filter(stock__lte=F("min_stock_level")).order_by("stock", "item_name")


def out_of_stock_items():
    return StockItem.objects.filter(stock__lte=ZERO_QTY).order_by("stock", "item_name")


def item_transactions(*, item_id):
    return StockLedgerEntry.objects.filter(item_id=item_id).order_by("id")


def transactions_between(*, start_date, end_date, transaction_type: str | None = None):
    qs = StockLedgerEntry.objects.filter(
        transaction_date__gte=start_date, transaction_date__lte=end_date
    )
    if transaction_type:
        qs = qs.filter(transaction_type=transaction_type)
    return qs.order_by("transaction_date", "id")


def purchase_transactions(*, start_date=None, end_date=None):
    qs = StockLedgerEntry.objects.filter(transaction_type=TT.PURCHASE)
    if start_date:
        qs = qs.filter(transaction_date__gte=start_date)
    if end_date:
        qs = qs.filter(transaction_date__lte=end_date)
    return qs.order_by("transaction_date", "id")


def sale_transactions(*, start_date=None, end_date=None):
    qs = StockLedgerEntry.objects.filter(transaction_type=TT.SALE)
    if start_date:
        qs = qs.filter(transaction_date__gte=start_date)
    if end_date:
        qs = qs.filter(transaction_date__lte=end_date)
    return qs.order_by("transaction_date", "id")


def stock_by_category() -> list[dict]:
    rows = (
        StockItem.objects.values("category_id", "category__name")
        .annotate(items=Count("id"), total_stock=Sum("stock"))
        .order_by("category__name")
    )
    return [
        {
            "category_id": r["category_id"],
            "category_name": r["category__name"] or "",
            "items": r["items"],
            "total_stock": r["total_stock"] or ZERO_QTY,
        }
        for r in rows
    ]
