# inventory/api/urls.py

from django.urls import path

from inventory.api.views import (
    StockAdjustView,
    StockByCategoryView,
    StockItemListView,
    StockLedgerListView,
)

urlpatterns = [
    path("items/", StockItemListView.as_view(), name="stock-items"),
    path("ledger/", StockLedgerListView.as_view(), name="stock-ledger"),
    path("by-category/", StockByCategoryView.as_view(), name="stock-by-category"),
    path("adjust/", StockAdjustView.as_view(), name="stock-adjust"),
]
