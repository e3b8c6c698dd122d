# finance/services/exceptions.py

"""
FINANCE SERVICE ERRORS

Centralized domain errors for the ledger, account registry, transfers
and cash register sessions.

Each error carries the HTTP status the API layer maps it to.
"""


class FinanceServiceError(Exception):
    """Base exception for all finance service failures."""

    status_code = 400


class FinanceValidationError(FinanceServiceError):
    """Malformed input: missing account for a kind, bad amount, bad dates."""


class SameAccount(FinanceValidationError):
    """Raised when a transfer names the same account on both sides."""


class InvalidAmount(FinanceValidationError):
    """Raised when an amount is zero, negative or not a number."""


class ConflictError(FinanceServiceError):
    """Raised when the requested transition clashes with current state."""

    status_code = 409


class AccountHasBalance(ConflictError):
    """Raised when deactivating an account whose balance is not zero."""


class NotFoundError(FinanceServiceError):
    """Raised for unknown account / transaction / session ids."""

    status_code = 404


class ForbiddenOperation(FinanceServiceError):
    """Raised when editing/deleting a non-manual transaction or a protected account."""

    status_code = 403


class ProtectedAccount(ForbiddenOperation):
    """Raised when touching the reserved operating-cash or vault accounts."""


class InsufficientFunds(FinanceServiceError):
    """Raised when a debit would drive a balance below zero where that is disallowed."""

    status_code = 409


def validation_message(exc) -> str:
    """Flatten a Django ValidationError into one readable line."""
    messages = getattr(exc, "messages", None) or [str(exc)]
    return "; ".join(str(m) for m in messages)
