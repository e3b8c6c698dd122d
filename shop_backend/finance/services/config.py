# finance/services/config.py

"""
FINANCE SETTINGS ACCESS

Reads the FINANCE dict from Django settings, falling back to defaults.
Also owns the "is this payment method physical cash?" rule, which the
cash register and the aggregates share.
"""

from __future__ import annotations

from functools import reduce
from operator import or_

from django.conf import settings
from django.db.models import Q

DEFAULTS = {
    "OPERATING_CASH_ACCOUNT_NAME": "Caixa Loja",
    "VAULT_ACCOUNT_NAME": "Cofre",
    "PROTECTED_ACCOUNT_NAMES": ["Caixa Loja", "Caixa", "Cofre"],
    "CASH_PAYMENT_KEYWORDS": ["dinheiro", "cash"],
    "ALLOW_NEGATIVE_EXPENSE_BALANCE": True,
}


def get_finance_setting(name: str):
    overrides = getattr(settings, "FINANCE", None) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]


def protected_account_names() -> set[str]:
    names = set(get_finance_setting("PROTECTED_ACCOUNT_NAMES") or [])
    names.add(get_finance_setting("OPERATING_CASH_ACCOUNT_NAME"))
    names.add(get_finance_setting("VAULT_ACCOUNT_NAME"))
    return {n.strip().lower() for n in names if n}


def is_protected_account_name(name: str | None) -> bool:
    return (name or "").strip().lower() in protected_account_names()


def _cash_keywords() -> list[str]:
    return [
        str(k).strip().lower()
        for k in (get_finance_setting("CASH_PAYMENT_KEYWORDS") or [])
        if str(k).strip()
    ]


def cash_payment_q(field: str = "payment_method") -> Q:
    """A payment method is physical cash when it contains any configured keyword."""
    keywords = _cash_keywords()
    if not keywords:
        # No keyword configured: nothing counts as cash.
        return Q(pk__in=[])
    return reduce(or_, (Q(**{f"{field}__icontains": k}) for k in keywords))
