from .purchase_bill import PurchaseBill, PurchaseLine

__all__ = [
    "PurchaseBill",
    "PurchaseLine",
]
