# billing/api/urls.py

from django.urls import path

from billing.api.views import (
    BillAddItemsView,
    BillCreditView,
    BillDetailView,
    BillListView,
    BillPayView,
    BillShiftView,
    DraftLineDetailView,
    DraftLineListCreateView,
    KitchenPrintView,
    TableShiftView,
)

urlpatterns = [
    path(
        "tables/<int:table_no>/drafts/",
        DraftLineListCreateView.as_view(),
        name="table-drafts",
    ),
    path(
        "tables/<int:table_no>/kitchen-print/",
        KitchenPrintView.as_view(),
        name="table-kitchen-print",
    ),
    path("tables/shift/", TableShiftView.as_view(), name="table-shift"),
    path("drafts/<int:line_id>/", DraftLineDetailView.as_view(), name="draft-line"),
    path("bills/", BillListView.as_view(), name="bills"),
    path("bills/<int:bill_no>/", BillDetailView.as_view(), name="bill-detail"),
    path("bills/<int:bill_no>/pay/", BillPayView.as_view(), name="bill-pay"),
    path("bills/<int:bill_no>/credit/", BillCreditView.as_view(), name="bill-credit"),
    path("bills/<int:bill_no>/add-items/", BillAddItemsView.as_view(), name="bill-add-items"),
    path("bills/<int:bill_no>/shift/", BillShiftView.as_view(), name="bill-shift"),
]
