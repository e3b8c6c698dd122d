# finance/services/transfer_service.py

"""
======================================================
PATH: finance/services/transfer_service.py
======================================================
TRANSFER ORCHESTRATOR

Moves value between two accounts as ONE transfer-kind transaction.

Guarantees:
- Debit on source + credit on destination land in the same DB transaction
  as the row insert (no observer sees one side only)
- Both account rows are locked (ascending id) before the funds check, so two
  concurrent transfers draining the same source are serialized; the loser
  sees the updated balance and fails with InsufficientFunds
- A failed transfer leaves both balances untouched and writes no row
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction

from finance.models.transaction import FinancialTransaction
from finance.services import ledger_service
from finance.services.drafts import TransactionDraft, money
from finance.services.exceptions import InvalidAmount, SameAccount

logger = logging.getLogger(__name__)

TRANSFER_CATEGORY = "Transferência"
DEFAULT_DESCRIPTION = "Transferência entre contas"


@transaction.atomic
def transfer(
    *,
    source_id,
    destination_id,
    amount,
    description: str = "",
    payment_method: str = "",
    date=None,
    actor=None,
) -> FinancialTransaction:
    if source_id is not None and str(source_id) == str(destination_id):
        raise SameAccount("Source and destination accounts must differ")

    amt = money(amount)
    if amt <= Decimal("0.00"):
        raise InvalidAmount("Transfer amount must be > 0")

    draft = TransactionDraft.transfer(
        source_account_id=source_id,
        destination_account_id=destination_id,
        amount=amt,
        description=(description or "").strip() or DEFAULT_DESCRIPTION,
        category=TRANSFER_CATEGORY,
        payment_method=payment_method,
        date=date,
    )

    # The ledger locks both accounts and rejects overdrafts for transfers.
    txn = ledger_service.record(draft, actor=actor)

    logger.info(
        "Transfer completed",
        extra={
            "transaction_id": txn.id,
            "source_account_id": txn.source_account_id,
            "destination_account_id": txn.destination_account_id,
            "amount": str(txn.amount),
        },
    )
    return txn
