from .supplier import BillPayment, PaymentReceipt, SupplierBillPayment
from .customer import SalesBillPayment, SalesPaymentReceipt

__all__ = [
    "PaymentReceipt",
    "BillPayment",
    "SupplierBillPayment",
    "SalesPaymentReceipt",
    "SalesBillPayment",
]
