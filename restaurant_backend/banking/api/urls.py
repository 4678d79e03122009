# banking/api/urls.py

from django.urls import path

from banking.api.views import (
    BankAccountListCreateView,
    BankBalanceView,
    BankTransactionDeleteView,
    BankTransactionListCreateView,
)

urlpatterns = [
    path("accounts/", BankAccountListCreateView.as_view(), name="bank-accounts"),
    path(
        "accounts/<int:account_id>/transactions/",
        BankTransactionListCreateView.as_view(),
        name="bank-transactions",
    ),
    path(
        "accounts/<int:account_id>/balance/",
        BankBalanceView.as_view(),
        name="bank-balance",
    ),
    path(
        "transactions/<int:entry_id>/reverse/",
        BankTransactionDeleteView.as_view(),
        name="bank-transaction-reverse",
    ),
]
