# purchases/api/urls.py

from django.urls import path

from purchases.api.views import PurchaseBillDetailView, PurchaseBillListCreateView

urlpatterns = [
    path("bills/", PurchaseBillListCreateView.as_view(), name="purchase-bills"),
    path("bills/<int:bill_id>/", PurchaseBillDetailView.as_view(), name="purchase-bill-detail"),
]
