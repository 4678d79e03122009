"""
MASTERS MODELS EXPORT SURFACE

Collaborator stores read by the ledger engine. Plain CRUD lives in the admin.
"""

from .category import Category
from .item import Item
from .party import Customer, DiningTable, Supplier

__all__ = [
    "Category",
    "Item",
    "Customer",
    "Supplier",
    "DiningTable",
]
