# finance/api/views/__init__.py

"""
finance.api.views package

Do NOT import finance.api.urls from here to avoid circular imports.
"""

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

__all__ = [
    "AccountListCreateView",
    "AccountDetailView",
    "AccountDeactivateView",
    "TransactionListCreateView",
    "TransactionDetailView",
    "TransactionReverseView",
    "TransferCreateView",
    "DailyCashFlowView",
    "CashFlowSeriesView",
    "CategorySummaryView",
    "FinancialSummaryView",
    "BalanceOverviewView",
]
