# finance/services/drafts.py

"""
======================================================
PATH: finance/services/drafts.py
======================================================
TRANSACTION DRAFTS (VALIDATED BUILDERS)

A TransactionDraft is the only input the ledger accepts.
Shape rules per kind are enforced when the draft is built,
so callers cannot hand the ledger a half-formed movement:

- income:   destination only
- expense:  source only
- transfer: source + destination, distinct

Amounts are always positive magnitudes here; the ledger applies the sign.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as date_type, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.utils import timezone

from finance.models.transaction import FinancialTransaction
from finance.services.exceptions import (
    FinanceValidationError,
    InvalidAmount,
    SameAccount,
)

TWOPLACES = Decimal("0.01")

# Amount and balance columns are max_digits=14, decimal_places=2.
MAX_MONEY = Decimal("1000000000000")

KINDS = {
    FinancialTransaction.TYPE_INCOME,
    FinancialTransaction.TYPE_EXPENSE,
    FinancialTransaction.TYPE_TRANSFER,
}
REFERENCE_TYPES = {value for value, _label in FinancialTransaction.REFERENCE_TYPES}


def round_money(amt: Decimal) -> Decimal:
    """Two-place rounding for computed totals (sums, differences)."""
    try:
        return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise InvalidAmount(f"Amount out of range: {amt}") from exc


def money(value) -> Decimal:
    """Parse a user-supplied amount; rejects values the amount columns cannot hold."""
    if value is None or value == "":
        raise InvalidAmount("Amount is required")

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise InvalidAmount(f"Invalid money value: {value!r}") from exc

    if not amt.is_finite():
        raise InvalidAmount(f"Invalid money value: {value!r}")

    if abs(amt) >= MAX_MONEY:
        raise InvalidAmount(f"Amount out of range: {value!r}")

    return round_money(amt)


def business_date(value) -> date_type:
    if value is None or value == "":
        return timezone.localdate()
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    if isinstance(value, date_type):
        return value
    if isinstance(value, str):
        try:
            return date_type.fromisoformat(value.strip())
        except ValueError as exc:
            raise FinanceValidationError("date must be YYYY-MM-DD") from exc
    raise FinanceValidationError("date must be a date")


def _optional_id(value):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise FinanceValidationError(f"Invalid account id: {value!r}") from exc


@dataclass(frozen=True)
class TransactionDraft:
    kind: str
    amount: Decimal
    description: str
    category: str = ""
    reference_type: str = FinancialTransaction.REF_MANUAL
    reference_id: str | None = None
    reference_number: str = ""
    payment_method: str = ""
    date: date_type = field(default_factory=timezone.localdate)
    source_account_id: int | None = None
    destination_account_id: int | None = None
    reversal_of_id: int | None = None

    def __post_init__(self):
        kind = (self.kind or "").strip().lower()
        if kind not in KINDS:
            raise FinanceValidationError(f"Invalid transaction kind: {self.kind!r}")

        amount = money(self.amount)
        if amount <= Decimal("0.00"):
            raise InvalidAmount("Amount must be > 0")

        description = (self.description or "").strip()
        if not description:
            raise FinanceValidationError("Description is required")

        reference_type = (self.reference_type or "").strip().lower()
        if reference_type not in REFERENCE_TYPES:
            raise FinanceValidationError(f"Invalid reference_type: {self.reference_type!r}")

        source = _optional_id(self.source_account_id)
        destination = _optional_id(self.destination_account_id)

        if kind == FinancialTransaction.TYPE_INCOME:
            if destination is None:
                raise FinanceValidationError("Income requires a destination account")
            if source is not None:
                raise FinanceValidationError("Income must not have a source account")
        elif kind == FinancialTransaction.TYPE_EXPENSE:
            if source is None:
                raise FinanceValidationError("Expense requires a source account")
            if destination is not None:
                raise FinanceValidationError("Expense must not have a destination account")
        else:
            if source is None or destination is None:
                raise FinanceValidationError(
                    "Transfer requires both source and destination accounts"
                )
            if source == destination:
                raise SameAccount("Source and destination accounts must differ")

        reference_id = self.reference_id
        if reference_id is not None:
            reference_id = str(reference_id).strip() or None

        set_ = object.__setattr__
        set_(self, "kind", kind)
        set_(self, "amount", amount)
        set_(self, "description", description)
        set_(self, "category", (self.category or "").strip())
        set_(self, "reference_type", reference_type)
        set_(self, "reference_id", reference_id)
        set_(self, "reference_number", (self.reference_number or "").strip())
        set_(self, "payment_method", (self.payment_method or "").strip())
        set_(self, "date", business_date(self.date))
        set_(self, "source_account_id", source)
        set_(self, "destination_account_id", destination)

    # --------------------------------------------------
    # Smart constructors
    # --------------------------------------------------
    @classmethod
    def income(cls, *, destination_account_id, amount, description, **extra):
        return cls(
            kind=FinancialTransaction.TYPE_INCOME,
            amount=amount,
            description=description,
            destination_account_id=destination_account_id,
            **extra,
        )

    @classmethod
    def expense(cls, *, source_account_id, amount, description, **extra):
        return cls(
            kind=FinancialTransaction.TYPE_EXPENSE,
            amount=amount,
            description=description,
            source_account_id=source_account_id,
            **extra,
        )

    @classmethod
    def transfer(
        cls, *, source_account_id, destination_account_id, amount, description, **extra
    ):
        extra.setdefault("reference_type", FinancialTransaction.REF_TRANSFER)
        return cls(
            kind=FinancialTransaction.TYPE_TRANSFER,
            amount=amount,
            description=description,
            source_account_id=source_account_id,
            destination_account_id=destination_account_id,
            **extra,
        )

    @property
    def signed_amount(self) -> Decimal:
        if self.kind == FinancialTransaction.TYPE_EXPENSE:
            return -self.amount
        return self.amount

    @property
    def account_ids(self) -> set[int]:
        return {
            i for i in (self.source_account_id, self.destination_account_id) if i is not None
        }
