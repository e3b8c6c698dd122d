# finance/services/ledger_service.py

"""
======================================================
PATH: finance/services/ledger_service.py
======================================================
TRANSACTION LEDGER (ENGINE)

This module is the ONLY place allowed to:
- Create / delete FinancialTransaction rows
- Write Account.balance
- Enforce kind/account shape before persisting
- Guarantee atomicity between the row and its balance effect

Everything else (account creation, transfers, order/sale/bill payments)
must pass through record() / delete_* / reverse() / update_manual().

LOCKING:
- Affected Account rows are locked with select_for_update(), always in
  ascending id order, before any balance check or write.
- Balance deltas are applied with F() expressions inside the same
  transaction.atomic block as the row insert/delete.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from finance.models.account import Account
from finance.models.transaction import FinancialTransaction
from finance.services.config import get_finance_setting
from finance.services.drafts import TransactionDraft, business_date
from finance.services.exceptions import (
    ConflictError,
    FinanceValidationError,
    ForbiddenOperation,
    InsufficientFunds,
    NotFoundError,
    validation_message,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Fields a manual entry may change through update_manual().
MANUAL_UPDATE_FIELDS = {
    "type",
    "amount",
    "description",
    "category",
    "payment_method",
    "date",
    "reference_number",
    "source_account_id",
    "destination_account_id",
}

SOURCE_ALL = "all"
SOURCE_SERVICES = "services"
SOURCE_PRODUCTS = "products"
SOURCE_MANUAL = "manual"
SOURCE_TRANSFER = "transfer"

SOURCES = {SOURCE_ALL, SOURCE_SERVICES, SOURCE_PRODUCTS, SOURCE_MANUAL, SOURCE_TRANSFER}

CATEGORY_SERVICES = "Serviços"
CATEGORY_PRODUCTS = "Produtos"


# ============================================================
# LOCKING + BALANCE HELPERS
# ============================================================


def _lock_accounts(account_ids) -> dict[int, Account]:
    # SQLite ignores select_for_update; it serializes whole-database writes instead.
    ids = sorted({i for i in account_ids if i is not None})
    if not ids:
        return {}

    locked = {
        a.id: a
        for a in Account.objects.select_for_update().filter(id__in=ids).order_by("id")
    }

    missing = [i for i in ids if i not in locked]
    if missing:
        raise NotFoundError(f"Account not found: {', '.join(str(i) for i in missing)}")

    return locked


def _assert_active(accounts: dict[int, Account], account_ids) -> None:
    for account_id in account_ids:
        acc = accounts[account_id]
        if not acc.is_active:
            raise FinanceValidationError(f"Account '{acc.name}' is inactive")


def _assert_can_apply(kind: str, deltas: dict[int, Decimal], accounts: dict[int, Account]) -> None:
    """
    Negative balances are never allowed as the result of a transfer, and are
    allowed for expenses only when ALLOW_NEGATIVE_EXPENSE_BALANCE is on.
    """
    if kind == FinancialTransaction.TYPE_INCOME:
        return

    if kind == FinancialTransaction.TYPE_EXPENSE and get_finance_setting(
        "ALLOW_NEGATIVE_EXPENSE_BALANCE"
    ):
        return

    for account_id, delta in deltas.items():
        if delta >= 0:
            continue
        acc = accounts[account_id]
        if acc.balance + delta < ZERO:
            logger.warning(
                "Rejected ledger write: insufficient funds",
                extra={
                    "account_id": account_id,
                    "balance": str(acc.balance),
                    "delta": str(delta),
                    "kind": kind,
                },
            )
            raise InsufficientFunds(
                f"Insufficient funds in '{acc.name}': balance {acc.balance}, required {-delta}"
            )


def _apply_deltas(deltas: dict[int, Decimal], accounts: dict[int, Account]) -> None:
    now = timezone.now()
    for account_id, delta in sorted(deltas.items()):
        if not delta:
            continue
        Account.objects.filter(id=account_id).update(
            balance=F("balance") + delta,
            updated_at=now,
        )
        accounts[account_id].balance += delta


def _merge_deltas(*effect_maps: dict[int, Decimal]) -> dict[int, Decimal]:
    merged: dict[int, Decimal] = {}
    for effects in effect_maps:
        for account_id, delta in effects.items():
            merged[account_id] = merged.get(account_id, ZERO) + delta
    return merged


def _negate(effects: dict[int, Decimal]) -> dict[int, Decimal]:
    return {account_id: -delta for account_id, delta in effects.items()}


def _get_locked_transaction(transaction_id) -> FinancialTransaction:
    try:
        return FinancialTransaction.objects.select_for_update().get(pk=transaction_id)
    except (FinancialTransaction.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Transaction not found: {transaction_id}") from exc


def _remove(txn: FinancialTransaction) -> None:
    """Reverse the balance effect of txn, then delete the row."""
    effects = _negate(txn.account_effects())
    accounts = _lock_accounts(effects.keys())
    # A deactivated account sits at zero and must stay there.
    _assert_active(accounts, effects.keys())
    _apply_deltas(effects, accounts)
    FinancialTransaction.objects.filter(pk=txn.pk).delete()


# ============================================================
# WRITES
# ============================================================


@transaction.atomic
def record(draft: TransactionDraft, *, actor=None) -> FinancialTransaction:
    """
    Persist one transaction and apply its signed effect to every account it
    references, as a single unit of work.
    """
    if not isinstance(draft, TransactionDraft):
        raise FinanceValidationError("record() expects a TransactionDraft")

    accounts = _lock_accounts(draft.account_ids)
    _assert_active(accounts, draft.account_ids)

    txn = FinancialTransaction(
        type=draft.kind,
        amount=draft.signed_amount,
        description=draft.description,
        category=draft.category,
        reference_type=draft.reference_type,
        reference_id=draft.reference_id,
        reference_number=draft.reference_number,
        payment_method=draft.payment_method,
        date=draft.date,
        created_by=actor if getattr(actor, "pk", None) else None,
        source_account_id=draft.source_account_id,
        destination_account_id=draft.destination_account_id,
        reversal_of_id=draft.reversal_of_id,
    )

    deltas = txn.account_effects()
    _assert_can_apply(txn.type, deltas, accounts)

    try:
        txn.save()
    except DjangoValidationError as exc:
        raise FinanceValidationError(validation_message(exc)) from exc

    _apply_deltas(deltas, accounts)

    logger.info(
        "Ledger transaction recorded",
        extra={
            "transaction_id": txn.id,
            "type": txn.type,
            "amount": str(txn.amount),
            "reference_type": txn.reference_type,
            "reference_id": txn.reference_id,
            "source_account_id": txn.source_account_id,
            "destination_account_id": txn.destination_account_id,
        },
    )
    return txn


@transaction.atomic
def delete_manual(transaction_id, *, actor=None) -> None:
    """
    Delete a manual entry. Its balance effect is reversed before the row goes.
    Anything created by another workflow (orders, sales, bills, transfers,
    opening balances, reversals) is not deletable here.
    """
    txn = _get_locked_transaction(transaction_id)

    if not txn.is_manual:
        logger.warning(
            "Rejected delete of non-manual transaction",
            extra={"transaction_id": txn.id, "reference_type": txn.reference_type},
        )
        raise ForbiddenOperation(
            f"Only manual transactions can be deleted (reference_type={txn.reference_type})"
        )

    if FinancialTransaction.objects.filter(reversal_of=txn).exists():
        raise ConflictError("Transaction has been reversed and cannot be deleted")

    _remove(txn)

    logger.info(
        "Manual transaction deleted",
        extra={
            "transaction_id": transaction_id,
            "amount": str(txn.amount),
            "deleted_by": str(getattr(actor, "pk", "") or ""),
        },
    )


@transaction.atomic
def delete_by_reference(reference_type: str, reference_id) -> int:
    """
    Cascade cleanup for collaborators (e.g. a bill being deleted).
    Every matching row (and any reversal pointing at it) has its balance
    effect reversed before removal. Returns the number of rows removed.
    """
    reference_type = (reference_type or "").strip().lower()
    rid = str(reference_id if reference_id is not None else "").strip()
    if not reference_type or not rid:
        raise FinanceValidationError("reference_type and reference_id are required")

    rows = list(
        FinancialTransaction.objects.select_for_update()
        .filter(reference_type=reference_type, reference_id=rid)
        .order_by("id")
    )

    removed = 0
    for txn in rows:
        reversal = FinancialTransaction.objects.filter(reversal_of=txn).first()
        if reversal is not None:
            _remove(reversal)
            removed += 1
        _remove(txn)
        removed += 1

    if removed:
        logger.info(
            "Transactions deleted by reference",
            extra={
                "reference_type": reference_type,
                "reference_id": rid,
                "count": removed,
            },
        )
    return removed


@transaction.atomic
def reverse(transaction_id, *, actor=None, description: str | None = None) -> FinancialTransaction:
    """
    Write a compensating transaction with the inverse effect of the original.
    A transaction is reversed at most once; reversals are not reversible.
    """
    txn = _get_locked_transaction(transaction_id)

    if txn.reference_type == FinancialTransaction.REF_REVERSAL:
        raise ConflictError("A reversal cannot itself be reversed")
    if FinancialTransaction.objects.filter(reversal_of=txn).exists():
        raise ConflictError(f"Transaction {txn.id} has already been reversed")

    common = {
        "amount": txn.magnitude,
        "description": (description or "").strip() or f"Estorno - {txn.description}",
        "category": txn.category,
        "reference_type": FinancialTransaction.REF_REVERSAL,
        "reference_id": str(txn.id),
        "reference_number": txn.reference_number,
        "payment_method": txn.payment_method,
        "date": timezone.localdate(),
        "reversal_of_id": txn.id,
    }

    if txn.type == FinancialTransaction.TYPE_INCOME:
        draft = TransactionDraft.expense(
            source_account_id=txn.destination_account_id, **common
        )
    elif txn.type == FinancialTransaction.TYPE_EXPENSE:
        draft = TransactionDraft.income(
            destination_account_id=txn.source_account_id, **common
        )
    else:
        draft = TransactionDraft.transfer(
            source_account_id=txn.destination_account_id,
            destination_account_id=txn.source_account_id,
            **common,
        )

    return record(draft, actor=actor)


@transaction.atomic
def update_manual(transaction_id, *, actor=None, **fields) -> FinancialTransaction:
    """
    Guarded update for manual entries only.

    Descriptive fields change in place. When type, amount or accounts change,
    the old effect is reversed and the new one applied in the same unit of work.
    """
    txn = _get_locked_transaction(transaction_id)

    if not txn.is_manual:
        raise ForbiddenOperation("Only manual transactions can be edited")

    unknown = set(fields) - MANUAL_UPDATE_FIELDS
    if unknown:
        raise FinanceValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

    merged = {
        "kind": fields.get("type", txn.type),
        "amount": fields.get("amount", txn.magnitude),
        "description": fields.get("description", txn.description),
        "category": fields.get("category", txn.category),
        "payment_method": fields.get("payment_method", txn.payment_method),
        "date": fields.get("date", txn.date),
        "reference_number": fields.get("reference_number", txn.reference_number),
        "source_account_id": fields.get("source_account_id", txn.source_account_id),
        "destination_account_id": fields.get(
            "destination_account_id", txn.destination_account_id
        ),
    }
    draft = TransactionDraft(
        reference_type=FinancialTransaction.REF_MANUAL,
        reference_id=txn.reference_id,
        **merged,
    )

    old_effects = txn.account_effects()

    txn.type = draft.kind
    txn.amount = draft.signed_amount
    txn.description = draft.description
    txn.category = draft.category
    txn.payment_method = draft.payment_method
    txn.date = draft.date
    txn.reference_number = draft.reference_number
    txn.source_account_id = draft.source_account_id
    txn.destination_account_id = draft.destination_account_id

    new_effects = txn.account_effects()
    ledger_changed = old_effects != new_effects

    if ledger_changed and FinancialTransaction.objects.filter(reversal_of=txn).exists():
        raise ConflictError("Transaction has been reversed; its amount and accounts are frozen")

    deltas = {k: v for k, v in _merge_deltas(_negate(old_effects), new_effects).items() if v}
    accounts = _lock_accounts(deltas.keys() | draft.account_ids)
    _assert_active(accounts, deltas.keys() | draft.account_ids)
    _assert_can_apply(txn.type, deltas, accounts)

    try:
        txn.save(allow_ledger_update=True)
    except DjangoValidationError as exc:
        raise FinanceValidationError(validation_message(exc)) from exc

    _apply_deltas(deltas, accounts)

    logger.info(
        "Manual transaction updated",
        extra={
            "transaction_id": txn.id,
            "ledger_changed": ledger_changed,
            "updated_by": str(getattr(actor, "pk", "") or ""),
        },
    )
    return txn


# ============================================================
# READS
# ============================================================


def get_transaction(transaction_id) -> FinancialTransaction:
    try:
        return FinancialTransaction.objects.select_related(
            "source_account", "destination_account", "created_by"
        ).get(pk=transaction_id)
    except (FinancialTransaction.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Transaction not found: {transaction_id}") from exc


def date_bounds(start, end) -> tuple[date, date]:
    start_d = business_date(start)
    end_d = business_date(end)
    if start_d > end_d:
        raise FinanceValidationError("start date must be <= end date")
    return start_d, end_d


def list_by_date_range(start, end, *, queryset=None):
    """
    Transactions dated within [start, end] (inclusive), ordered by date
    ascending then creation order.
    """
    start_d, end_d = date_bounds(start, end)
    base = FinancialTransaction.objects.all() if queryset is None else queryset
    return (
        base.filter(date__gte=start_d, date__lte=end_d)
        .select_related("source_account", "destination_account", "created_by")
        .order_by("date", "created_at", "id")
    )


def source_filter_q(source: str | None) -> Q:
    """Report "source" filter: where did the money movement come from."""
    source = (source or SOURCE_ALL).strip().lower()
    if source not in SOURCES:
        raise FinanceValidationError(f"Invalid source filter: {source!r}")

    if source == SOURCE_SERVICES:
        return Q(reference_type=FinancialTransaction.REF_ORDER) | Q(category=CATEGORY_SERVICES)
    if source == SOURCE_PRODUCTS:
        return Q(reference_type=FinancialTransaction.REF_SALE) | Q(category=CATEGORY_PRODUCTS)
    if source == SOURCE_MANUAL:
        return Q(reference_type=FinancialTransaction.REF_MANUAL)
    if source == SOURCE_TRANSFER:
        return Q(type=FinancialTransaction.TYPE_TRANSFER)
    return Q()


def filter_transactions(
    *,
    start,
    end,
    kind: str | None = None,
    payment_method: str | None = None,
    category: str | None = None,
    source: str | None = None,
    queryset=None,
):
    """
    Report listing: date range plus optional movement type, payment method,
    category and source filters. Newest first (display order).

    The transactions API narrows through this function as well
    (finance.api.filters.TransactionFilter).
    """
    qs = list_by_date_range(start, end, queryset=queryset).filter(source_filter_q(source))

    if kind:
        qs = qs.filter(type=kind.strip().lower())
    if payment_method:
        qs = qs.filter(payment_method=payment_method.strip())
    if category:
        qs = qs.filter(category=category.strip())

    return qs.order_by("-date", "-created_at", "-id")
