# finance/services/cashflow_service.py

"""
CASH-FLOW & BALANCE AGGREGATES (READ-ONLY)

RULES:
- READ-ONLY: no writes, ever
- FinancialTransaction is the single source of truth
- Timeline is the business date (FinancialTransaction.date), not created_at
- Transfers are internal movements: excluded from income/expenses
- Deterministic: same ledger in, same numbers out (no module-level state)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from django.db.models import Sum

from finance.models.transaction import FinancialTransaction
from finance.services.ledger_service import date_bounds
from finance.services.drafts import business_date

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

INCOME = FinancialTransaction.TYPE_INCOME
EXPENSE = FinancialTransaction.TYPE_EXPENSE


def _q2(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _totals_by_date_and_type(start: date, end: date) -> dict[tuple[date, str], Decimal]:
    rows = (
        FinancialTransaction.objects.filter(
            date__gte=start,
            date__lte=end,
            type__in=(INCOME, EXPENSE),
        )
        .values("date", "type")
        .annotate(total=Sum("amount"))
        .order_by()
    )
    return {(r["date"], r["type"]): _q2(abs(r["total"] or ZERO)) for r in rows}


def daily_cash_flow(day) -> dict:
    """Income, expenses (positive magnitude) and net for one business date."""
    d = business_date(day)
    totals = _totals_by_date_and_type(d, d)

    income = totals.get((d, INCOME), ZERO)
    expenses = totals.get((d, EXPENSE), ZERO)

    return {
        "date": d,
        "income": income,
        "expenses": expenses,
        "balance": _q2(income - expenses),
    }


def cash_flow_series(start, end) -> list[dict]:
    """
    One row per day in [start, end], zero-activity days included.
    running_balance accumulates across the whole range (never reset per day).
    """
    start_d, end_d = date_bounds(start, end)
    totals = _totals_by_date_and_type(start_d, end_d)

    rows = []
    running = ZERO
    day = start_d
    while day <= end_d:
        income = totals.get((day, INCOME), ZERO)
        expenses = totals.get((day, EXPENSE), ZERO)
        balance = _q2(income - expenses)
        running = _q2(running + balance)

        rows.append(
            {
                "date": day,
                "income": income,
                "expenses": expenses,
                "balance": balance,
                "running_balance": running,
            }
        )
        day += timedelta(days=1)

    return rows


def category_summary(start, end) -> list[dict]:
    """Absolute amount per (category, kind), largest first."""
    start_d, end_d = date_bounds(start, end)

    rows = (
        FinancialTransaction.objects.filter(
            date__gte=start_d,
            date__lte=end_d,
            type__in=(INCOME, EXPENSE),
        )
        .values("category", "type")
        .annotate(total=Sum("amount"))
        .order_by()
    )

    result = [
        {"category": r["category"], "amount": _q2(abs(r["total"] or ZERO)), "kind": r["type"]}
        for r in rows
    ]
    result = [r for r in result if r["amount"] > ZERO]

    # Ties broken by category then kind so output order is stable.
    result.sort(key=lambda r: (-r["amount"], r["category"], r["kind"]))
    return result


def financial_summary(start, end) -> dict:
    start_d, end_d = date_bounds(start, end)
    totals = _totals_by_date_and_type(start_d, end_d)

    total_income = _q2(sum((v for (_, t), v in totals.items() if t == INCOME), ZERO))
    total_expenses = _q2(sum((v for (_, t), v in totals.items() if t == EXPENSE), ZERO))

    return {
        "total_income": total_income,
        "total_expenses": total_expenses,
        "net_balance": _q2(total_income - total_expenses),
        "period_start": start_d,
        "period_end": end_d,
    }


# ============================================================
# RUNNING BALANCE OVER AN ARBITRARY LIST
# ============================================================


@dataclass(frozen=True)
class RunningBalanceRow:
    transaction: FinancialTransaction
    running_balance: Decimal


def _signed_effect(txn: FinancialTransaction) -> Decimal:
    if txn.type == INCOME:
        return abs(txn.amount)
    if txn.type == EXPENSE:
        return -abs(txn.amount)
    return ZERO


def _chronological_key(txn: FinancialTransaction):
    created = txn.created_at.timestamp() if txn.created_at else 0.0
    return (txn.date, created, txn.pk or 0)


def running_balance_over_transactions(
    transactions: Iterable[FinancialTransaction],
) -> list[RunningBalanceRow]:
    """
    Replay income (+) and expense (-) in chronological order, whatever order
    the caller fetched or displays them in, then hand the rows back in the
    caller's order with their running balance attached. Inputs are not mutated.
    """
    items = list(transactions)
    balances: list[Decimal] = [ZERO] * len(items)

    running = ZERO
    for idx in sorted(range(len(items)), key=lambda i: _chronological_key(items[i])):
        running = _q2(running + _signed_effect(items[idx]))
        balances[idx] = running

    return [RunningBalanceRow(txn, bal) for txn, bal in zip(items, balances)]
