# finance/models/__init__.py

"""
FINANCE MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from finance.models.account import Account
from finance.models.transaction import FinancialTransaction

__all__ = [
    "Account",
    "FinancialTransaction",
]
