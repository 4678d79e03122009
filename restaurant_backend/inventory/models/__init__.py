from .stock_item import StockItem
from .stock_ledger import StockLedgerEntry

__all__ = [
    "StockItem",
    "StockLedgerEntry",
]
