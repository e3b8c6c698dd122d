# cash_register/services/session_service.py

"""
======================================================
PATH: cash_register/services/session_service.py
======================================================
CASH REGISTER SESSION MANAGER

Closed -> Open -> Closed.

- open_session(): only when no session is open. Writes no ledger row.
- close_session(): only the open session, only by an actor holding the
  cash.close capability. Stores expected + difference as computed, including
  a nonzero difference.
- current(): the single open session, or None.

Expected cash for a session:
    opening_amount
    + cash-method income created since opened_at
    - cash-method expenses created since opened_at
    + transfers into the operating cash account since opened_at
    - transfers out of the operating cash account since opened_at

"Since" is the transaction creation instant, not its business date: a shift
can start mid-day, and a back-dated entry typed during the shift still moved
physical cash during the shift.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q, Sum
from django.utils import timezone

from cash_register.models import CashRegisterSession
from finance.models.transaction import FinancialTransaction
from finance.services.config import cash_payment_q, get_finance_setting
from finance.services.drafts import money, round_money
from finance.services.exceptions import (
    ConflictError,
    FinanceValidationError,
    ForbiddenOperation,
    InvalidAmount,
    NotFoundError,
    validation_message,
)
from permissions.roles import CAP_CASH_CLOSE, user_has_capability

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _non_negative(value, label: str) -> Decimal:
    amt = money(value)
    if amt < ZERO:
        raise InvalidAmount(f"{label} cannot be negative")
    return amt


def _actor_or_none(actor):
    return actor if getattr(actor, "pk", None) else None


# ============================================================
# READS
# ============================================================


def current() -> CashRegisterSession | None:
    return (
        CashRegisterSession.objects.select_related("opened_by", "closed_by")
        .filter(status=CashRegisterSession.STATUS_OPEN)
        .first()
    )


def get_session(session_id) -> CashRegisterSession:
    try:
        return CashRegisterSession.objects.select_related("opened_by", "closed_by").get(pk=session_id)
    except (CashRegisterSession.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Cash register session not found: {session_id}") from exc


def history(limit: int = 20):
    """Most recent sessions first."""
    limit = max(1, min(int(limit or 20), 200))
    return CashRegisterSession.objects.select_related("opened_by", "closed_by").order_by(
        "-opened_at", "-id"
    )[:limit]


def cash_movement_since(start, end=None) -> Decimal:
    """
    Net physical-cash effect of ledger rows created in [start, end].
    """
    window = Q(created_at__gte=start)
    if end is not None:
        window &= Q(created_at__lte=end)

    txns = FinancialTransaction.objects.filter(window)

    cash_rows = txns.filter(cash_payment_q()).filter(
        type__in=(FinancialTransaction.TYPE_INCOME, FinancialTransaction.TYPE_EXPENSE)
    )
    # Expenses are stored negative, so a plain sum nets income against them.
    net = cash_rows.aggregate(total=Sum("amount"))["total"] or ZERO

    cash_name = get_finance_setting("OPERATING_CASH_ACCOUNT_NAME")
    transfers = txns.filter(type=FinancialTransaction.TYPE_TRANSFER)

    transfer_in = (
        transfers.filter(destination_account__name__iexact=cash_name).aggregate(total=Sum("amount"))[
            "total"
        ]
        or ZERO
    )
    transfer_out = (
        transfers.filter(source_account__name__iexact=cash_name).aggregate(total=Sum("amount"))["total"]
        or ZERO
    )

    return round_money(net + transfer_in - transfer_out)


def expected_amount(session: CashRegisterSession) -> Decimal:
    """Stored value once closed; live value while open."""
    if not session.is_open and session.expected_amount is not None:
        return session.expected_amount
    return round_money(session.opening_amount + cash_movement_since(session.opened_at))


def current_cash_balance() -> Decimal:
    """Expected drawer amount right now (0.00 when no session is open)."""
    session = current()
    if session is None:
        return ZERO
    return expected_amount(session)


# ============================================================
# TRANSITIONS
# ============================================================


@transaction.atomic
def open_session(*, opening_amount, actor=None, notes: str = "") -> CashRegisterSession:
    opening = _non_negative(opening_amount, "Opening amount")

    existing = (
        CashRegisterSession.objects.select_for_update()
        .filter(status=CashRegisterSession.STATUS_OPEN)
        .first()
    )
    if existing is not None:
        logger.warning(
            "Rejected cash register open: a session is already open",
            extra={"open_session_id": existing.id},
        )
        raise ConflictError(f"Cash register session #{existing.id} is already open")

    try:
        with transaction.atomic():
            session = CashRegisterSession.objects.create(
                opening_amount=opening,
                opened_by=_actor_or_none(actor),
                notes=notes or "",
            )
    except IntegrityError as exc:
        # Another open won the race between the check and the insert.
        raise ConflictError("A cash register session is already open") from exc
    except DjangoValidationError as exc:
        raise FinanceValidationError(validation_message(exc)) from exc

    logger.info(
        "Cash register opened",
        extra={
            "session_id": session.id,
            "opening_amount": str(opening),
            "opened_by": str(getattr(actor, "pk", "") or ""),
        },
    )
    return session


@transaction.atomic
def close_session(
    session_id=None,
    *,
    counted_amount,
    actor,
    notes: str | None = None,
) -> CashRegisterSession:
    """
    Close and reconcile. session_id=None closes whichever session is open.
    """
    if not user_has_capability(actor, CAP_CASH_CLOSE):
        logger.warning(
            "Rejected cash register close: missing privilege",
            extra={"actor": str(getattr(actor, "pk", "") or ""), "session_id": session_id},
        )
        raise ForbiddenOperation("Closing the cash register requires elevated privileges")

    counted = _non_negative(counted_amount, "Counted amount")

    qs = CashRegisterSession.objects.select_for_update()
    if session_id is None:
        session = qs.filter(status=CashRegisterSession.STATUS_OPEN).first()
        if session is None:
            raise NotFoundError("No open cash register session")
    else:
        try:
            session = qs.get(pk=session_id)
        except (CashRegisterSession.DoesNotExist, ValueError, TypeError) as exc:
            raise NotFoundError(f"Cash register session not found: {session_id}") from exc
        if not session.is_open:
            raise ConflictError(f"Cash register session #{session.id} is already closed")

    closed_at = timezone.now()
    expected = round_money(session.opening_amount + cash_movement_since(session.opened_at, closed_at))
    difference = round_money(counted - expected)

    session.closing_amount = counted
    session.expected_amount = expected
    session.difference = difference
    session.closed_at = closed_at
    session.closed_by = _actor_or_none(actor)
    session.status = CashRegisterSession.STATUS_CLOSED
    if notes is not None:
        session.notes = notes
    try:
        session.save()
    except DjangoValidationError as exc:
        raise FinanceValidationError(validation_message(exc)) from exc

    extra = {
        "session_id": session.id,
        "expected_amount": str(expected),
        "closing_amount": str(counted),
        "difference": str(difference),
    }
    if difference != ZERO:
        logger.warning("Cash register closed with difference", extra=extra)
    else:
        logger.info("Cash register closed", extra=extra)

    return session
