# billing/services/consolidation.py

"""
LINE CONSOLIDATION

Lines sharing (item_name, rate) merge into one line by summing qty and amt.
Same item at a different rate stays a separate line (promotional pricing).
Input order is preserved by first appearance.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.money import money, quantity
from masters.services import resolve_item


@dataclass(frozen=True)
class LineData:
    """Plain line record, detached from any model instance."""

    item_name: str
    qty: Decimal
    rate: Decimal
    amt: Decimal
    item_code: int | None = None
    category_id: int | None = None

    @property
    def key(self) -> tuple[str, Decimal]:
        return (self.item_name, self.rate)


def line_from_values(
    *, item_name, qty, rate, item_code=None, category_id=None
) -> LineData:
    name = (item_name or "").strip()
    q = quantity(qty)
    r = money(rate)

    if item_code is None or category_id is None:
        item = resolve_item(name, category_id=category_id)
        if item is not None:
            item_code = item.item_code if item_code is None else item_code
            category_id = item.category_id if category_id is None else category_id

    return LineData(
        item_name=name,
        qty=q,
        rate=r,
        amt=money(q * r),
        item_code=item_code,
        category_id=category_id,
    )


def line_from_draft(draft) -> LineData:
    return line_from_values(
        item_name=draft.item_name,
        qty=draft.qty,
        rate=draft.rate,
        item_code=draft.item_code,
        category_id=draft.category_id_snapshot,
    )


def line_from_bill_line(line) -> LineData:
    return LineData(
        item_name=line.item_name,
        qty=line.qty,
        rate=line.rate,
        amt=line.amt,
        item_code=line.item_code,
        category_id=line.category_id_snapshot,
    )


def consolidate(lines: Iterable[LineData]) -> list[LineData]:
    merged: dict[tuple[str, Decimal], LineData] = {}
    for line in lines:
        existing = merged.get(line.key)
        if existing is None:
            merged[line.key] = line
            continue
        merged[line.key] = LineData(
            item_name=existing.item_name,
            qty=existing.qty + line.qty,
            rate=existing.rate,
            amt=money(existing.amt + line.amt),
            item_code=existing.item_code if existing.item_code is not None else line.item_code,
            category_id=(
                existing.category_id if existing.category_id is not None else line.category_id
            ),
        )
    return list(merged.values())


def totals(lines: Iterable[LineData]) -> tuple[Decimal, Decimal]:
    """(total amount, total qty)"""
    amt = Decimal("0.00")
    qty = Decimal("0.000")
    for line in lines:
        amt += line.amt
        qty += line.qty
    return money(amt), quantity(qty)
