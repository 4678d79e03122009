# masters/services.py

"""
MASTER DATA LOOKUPS

The engine consumes exactly two things from master data:
- item -> (item_code, category) resolution for bill and purchase lines
- whether a category participates in stock accounting
"""

from __future__ import annotations

from masters.models import Category, DiningTable, Item


def resolve_item(item_name: str | None, *, category_id=None) -> Item | None:
    name = (item_name or "").strip()
    if not name:
        return None

    qs = Item.objects.select_related("category").filter(name__iexact=name)
    if category_id is not None:
        scoped = qs.filter(category_id=category_id).first()
        if scoped is not None:
            return scoped
    return qs.order_by("id").first()


def is_category_stock_enabled(category_id) -> bool:
    if category_id is None:
        return False
    return Category.objects.filter(id=category_id, stock_tracked=True).exists()


def table_label(table_no) -> str:
    if table_no is None:
        return ""
    table = DiningTable.objects.filter(table_no=table_no).first()
    return str(table) if table else f"Table {table_no}"
