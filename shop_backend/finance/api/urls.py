# finance/api/urls.py

from django.urls import path

from finance.api.views.accounts import (
    AccountDeactivateView,
    AccountDetailView,
    AccountListCreateView,
)
from finance.api.views.reports import (
    BalanceOverviewView,
    CashFlowSeriesView,
    CategorySummaryView,
    DailyCashFlowView,
    FinancialSummaryView,
)
from finance.api.views.transactions import (
    TransactionDetailView,
    TransactionListCreateView,
    TransactionReverseView,
)
from finance.api.views.transfers import TransferCreateView

urlpatterns = [
    # Accounts
    path("accounts/", AccountListCreateView.as_view(), name="finance-accounts"),
    path("accounts/<int:account_id>/", AccountDetailView.as_view(), name="finance-account-detail"),
    path(
        "accounts/<int:account_id>/deactivate/",
        AccountDeactivateView.as_view(),
        name="finance-account-deactivate",
    ),
    # Ledger
    path("transactions/", TransactionListCreateView.as_view(), name="finance-transactions"),
    path(
        "transactions/<int:transaction_id>/",
        TransactionDetailView.as_view(),
        name="finance-transaction-detail",
    ),
    path(
        "transactions/<int:transaction_id>/reverse/",
        TransactionReverseView.as_view(),
        name="finance-transaction-reverse",
    ),
    path("transfers/", TransferCreateView.as_view(), name="finance-transfers"),
    # Reports
    path("reports/daily/", DailyCashFlowView.as_view(), name="finance-report-daily"),
    path("reports/cash-flow/", CashFlowSeriesView.as_view(), name="finance-report-cash-flow"),
    path("reports/categories/", CategorySummaryView.as_view(), name="finance-report-categories"),
    path("reports/summary/", FinancialSummaryView.as_view(), name="finance-report-summary"),
    path("reports/balances/", BalanceOverviewView.as_view(), name="finance-report-balances"),
]
