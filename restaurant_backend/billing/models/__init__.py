from .bill import Bill, BillLine
from .draft import DraftLine

__all__ = [
    "Bill",
    "BillLine",
    "DraftLine",
]
