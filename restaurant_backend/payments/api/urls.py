# payments/api/urls.py

from django.urls import path

from payments.api.views import (
    CustomerReceiptDetailView,
    CustomerReceiptListCreateView,
    SupplierBillPaymentDetailView,
    SupplierBillPaymentListCreateView,
    SupplierReceiptDetailView,
    SupplierReceiptListCreateView,
)

urlpatterns = [
    path("supplier-receipts/", SupplierReceiptListCreateView.as_view(), name="supplier-receipts"),
    path(
        "supplier-receipts/<int:receipt_id>/",
        SupplierReceiptDetailView.as_view(),
        name="supplier-receipt-detail",
    ),
    path(
        "supplier-payments/",
        SupplierBillPaymentListCreateView.as_view(),
        name="supplier-bill-payments",
    ),
    path(
        "supplier-payments/<int:payment_id>/",
        SupplierBillPaymentDetailView.as_view(),
        name="supplier-bill-payment-detail",
    ),
    path("customer-receipts/", CustomerReceiptListCreateView.as_view(), name="customer-receipts"),
    path(
        "customer-receipts/<int:receipt_id>/",
        CustomerReceiptDetailView.as_view(),
        name="customer-receipt-detail",
    ),
]
