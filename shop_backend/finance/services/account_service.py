# finance/services/account_service.py

"""
======================================================
PATH: finance/services/account_service.py
======================================================
ACCOUNT REGISTRY

Answers "which accounts exist and what do they hold?" and owns the
account lifecycle:

- create (an opening balance is written to the ledger, never to the row)
- rename / relink to a bank profile
- soft-deactivate (only at zero balance; never the reserved accounts)

System accounts (operating cash drawer + vault) are ordinary accounts
identified by their configured names. They are created lazily on first
use, inside a locked transaction, so concurrent first callers converge
on one row.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Sum

from finance.models.account import Account
from finance.models.transaction import FinancialTransaction
from finance.services import ledger_service
from finance.services.config import get_finance_setting, is_protected_account_name
from finance.services.drafts import TransactionDraft, money, round_money
from finance.services.exceptions import (
    AccountHasBalance,
    ConflictError,
    FinanceValidationError,
    InvalidAmount,
    NotFoundError,
    ProtectedAccount,
    validation_message,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

INITIAL_BALANCE_CATEGORY = "Saldo Inicial"
INITIAL_BALANCE_PAYMENT_METHOD = "Manual"


def _normalize_name(name: str | None) -> str:
    name = " ".join((name or "").split())
    if not name:
        raise FinanceValidationError("Account name is required")
    return name


def _assert_name_available(name: str, *, exclude_id=None) -> None:
    qs = Account.objects.filter(name__iexact=name)
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    if qs.exists():
        raise ConflictError(f"An account named '{name}' already exists")


# ============================================================
# READS
# ============================================================


def list_accounts(*, include_inactive: bool = False):
    qs = Account.objects.all().order_by("name")
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return qs


def get_account(account_id) -> Account:
    try:
        return Account.objects.get(pk=account_id)
    except (Account.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Account not found: {account_id}") from exc


def is_protected(account: Account) -> bool:
    return is_protected_account_name(account.name)


# ============================================================
# SYSTEM ACCOUNTS (LAZY)
# ============================================================


def _get_or_create_by_name(name: str) -> Account:
    existing = Account.objects.filter(name__iexact=name).first()
    if existing is not None:
        return existing

    with transaction.atomic():
        # Re-check under lock of the matching set (no-op when empty on SQLite).
        existing = Account.objects.select_for_update().filter(name__iexact=name).first()
        if existing is not None:
            return existing
        try:
            with transaction.atomic():
                account = Account.objects.create(name=name)
        except IntegrityError:
            # Lost a creation race; the winner's row is the account.
            return Account.objects.get(name__iexact=name)

    logger.warning(
        "System account bootstrap: created account",
        extra={"account_id": account.id, "account_name": name},
    )
    return account


def get_operating_cash_account() -> Account:
    return _get_or_create_by_name(get_finance_setting("OPERATING_CASH_ACCOUNT_NAME"))


def get_vault_account() -> Account:
    return _get_or_create_by_name(get_finance_setting("VAULT_ACCOUNT_NAME"))


def ensure_system_accounts() -> list[Account]:
    return [get_operating_cash_account(), get_vault_account()]


# ============================================================
# LIFECYCLE
# ============================================================


@transaction.atomic
def create_account(
    *,
    name: str,
    bank_ref: str = "",
    opening_balance=ZERO,
    actor=None,
) -> Account:
    """
    Create an account. A positive opening balance becomes one income
    transaction (reference_type="initial_balance") dated today, so the
    ledger stays the only writer of balances.
    """
    name = _normalize_name(name)
    bank_ref = (bank_ref or "").strip()

    opening = money(opening_balance if opening_balance not in (None, "") else ZERO)
    if opening < ZERO:
        raise InvalidAmount("Opening balance cannot be negative")

    if bank_ref and is_protected_account_name(name):
        raise ProtectedAccount(f"'{name}' is a system account and cannot be linked to a bank")

    _assert_name_available(name)

    try:
        with transaction.atomic():
            account = Account.objects.create(name=name, bank_ref=bank_ref)
    except IntegrityError as exc:
        raise ConflictError(f"An account named '{name}' already exists") from exc
    except DjangoValidationError as exc:
        raise FinanceValidationError(validation_message(exc)) from exc

    if opening > ZERO:
        ledger_service.record(
            TransactionDraft.income(
                destination_account_id=account.id,
                amount=opening,
                description=f"Saldo inicial - {account.name}",
                category=INITIAL_BALANCE_CATEGORY,
                reference_type=FinancialTransaction.REF_INITIAL_BALANCE,
                reference_id=str(account.id),
                payment_method=INITIAL_BALANCE_PAYMENT_METHOD,
            ),
            actor=actor,
        )
        account.refresh_from_db()

    logger.info(
        "Account created",
        extra={
            "account_id": account.id,
            "account_name": account.name,
            "opening_balance": str(opening),
        },
    )
    return account


@transaction.atomic
def update_account(account_id, *, name: str | None = None, bank_ref: str | None = None) -> Account:
    """Rename and/or relink an account. Balance is never touched here."""
    try:
        account = Account.objects.select_for_update().get(pk=account_id)
    except (Account.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Account not found: {account_id}") from exc

    protected = is_protected(account)
    update_fields = []

    if name is not None:
        new_name = _normalize_name(name)
        if new_name != account.name:
            if protected:
                raise ProtectedAccount(f"'{account.name}' is a system account and cannot be renamed")
            if is_protected_account_name(new_name):
                raise ProtectedAccount(f"'{new_name}' is a reserved account name")
            _assert_name_available(new_name, exclude_id=account.id)
            account.name = new_name
            update_fields.append("name")

    if bank_ref is not None:
        new_ref = (bank_ref or "").strip()
        if new_ref != account.bank_ref:
            if protected and new_ref:
                raise ProtectedAccount(
                    f"'{account.name}' is a system account and cannot be linked to a bank"
                )
            account.bank_ref = new_ref
            update_fields.append("bank_ref")

    if update_fields:
        update_fields.append("updated_at")
        try:
            account.save(update_fields=update_fields)
        except DjangoValidationError as exc:
            raise FinanceValidationError(validation_message(exc)) from exc

    return account


@transaction.atomic
def deactivate_account(account_id) -> Account:
    """
    Soft-delete. Reserved accounts never; other accounts only at exactly zero.
    """
    try:
        account = Account.objects.select_for_update().get(pk=account_id)
    except (Account.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Account not found: {account_id}") from exc

    if is_protected(account):
        logger.warning(
            "Rejected deactivation of protected account",
            extra={"account_id": account.id, "account_name": account.name},
        )
        raise ProtectedAccount(f"'{account.name}' is a system account and cannot be deactivated")

    if account.balance != ZERO:
        raise AccountHasBalance(
            f"Account '{account.name}' has balance {account.balance}; transfer it out first"
        )

    if account.is_active:
        account.is_active = False
        account.save(update_fields=["is_active", "updated_at"])
        logger.info("Account deactivated", extra={"account_id": account.id})

    return account


# ============================================================
# RECONSTRUCTION / AUDIT
# ============================================================


def derive_balance(account: Account) -> Decimal:
    """
    Replay the ledger for one account:
    income into it (+), expenses from it (amount is negative),
    transfers out (-amount) and in (+amount).
    """
    txns = FinancialTransaction.objects

    income = txns.filter(
        type=FinancialTransaction.TYPE_INCOME, destination_account=account
    ).aggregate(total=Sum("amount"))["total"] or ZERO

    expense = txns.filter(
        type=FinancialTransaction.TYPE_EXPENSE, source_account=account
    ).aggregate(total=Sum("amount"))["total"] or ZERO

    transfer_in = txns.filter(
        type=FinancialTransaction.TYPE_TRANSFER, destination_account=account
    ).aggregate(total=Sum("amount"))["total"] or ZERO

    transfer_out = txns.filter(
        type=FinancialTransaction.TYPE_TRANSFER, source_account=account
    ).aggregate(total=Sum("amount"))["total"] or ZERO

    return round_money(income + expense + transfer_in - transfer_out)


def verify_balances() -> list[dict]:
    """Accounts whose cached balance disagrees with the ledger replay."""
    mismatches = []
    for account in Account.objects.all().order_by("id"):
        derived = derive_balance(account)
        if derived != account.balance:
            mismatches.append(
                {
                    "account_id": account.id,
                    "name": account.name,
                    "cached_balance": account.balance,
                    "ledger_balance": derived,
                    "difference": account.balance - derived,
                }
            )
    return mismatches


def balance_overview() -> dict:
    """Dashboard card: total across active accounts + operating cash balance."""
    accounts = list(list_accounts())
    total = sum((a.balance for a in accounts), ZERO)
    cash_name = get_finance_setting("OPERATING_CASH_ACCOUNT_NAME").strip().lower()
    cash = next((a.balance for a in accounts if a.name.strip().lower() == cash_name), ZERO)

    return {
        "total": round_money(total),
        "cash": round_money(cash),
        "accounts": [
            {"id": a.id, "name": a.name, "balance": a.balance} for a in accounts
        ],
    }
