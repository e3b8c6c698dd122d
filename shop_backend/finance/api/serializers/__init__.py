# finance/api/serializers/__init__.py

from finance.api.serializers.accounts import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
)
from finance.api.serializers.reports import (
    BalanceOverviewSerializer,
    CashFlowRowSerializer,
    CategorySummaryRowSerializer,
    DailyCashFlowSerializer,
    FinancialSummarySerializer,
)
from finance.api.serializers.transactions import (
    ManualTransactionCreateSerializer,
    ManualTransactionUpdateSerializer,
    ReverseTransactionSerializer,
    TransactionSerializer,
)
from finance.api.serializers.transfers import TransferCreateSerializer

__all__ = [
    "AccountSerializer",
    "AccountCreateSerializer",
    "AccountUpdateSerializer",
    "TransactionSerializer",
    "ManualTransactionCreateSerializer",
    "ManualTransactionUpdateSerializer",
    "ReverseTransactionSerializer",
    "TransferCreateSerializer",
    "DailyCashFlowSerializer",
    "CashFlowRowSerializer",
    "CategorySummaryRowSerializer",
    "FinancialSummarySerializer",
    "BalanceOverviewSerializer",
]
