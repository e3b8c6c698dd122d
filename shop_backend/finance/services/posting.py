# finance/services/posting.py

"""
======================================================
PATH: finance/services/posting.py
======================================================
POSTING ADAPTER (COLLABORATOR ENTRY POINTS)

Maps business events from the rest of the shop to ledger drafts.

This module should remain a thin adapter:
- It DOES NOT run workflows (order status, bill status live elsewhere).
- It DOES map events -> TransactionDraft (kind, category, reference).
- It ALWAYS calls ledger_service.record (engine) for atomicity.

TRANSACTION BOUNDARY:
Each helper is atomic on its own, and nests as a savepoint when a caller
already holds a transaction. A bill workflow that flips its "paid" flag
inside transaction.atomic() and then calls record_bill_payment() gets
both writes rolled back together if the ledger rejects the payment.
"""

from __future__ import annotations

from django.db import transaction

from finance.models.transaction import FinancialTransaction
from finance.services import account_service, ledger_service
from finance.services.drafts import TransactionDraft, money
from finance.services.ledger_service import CATEGORY_PRODUCTS, CATEGORY_SERVICES


def _account_id_or_operating_cash(account_id):
    if account_id:
        return account_id
    return account_service.get_operating_cash_account().id


@transaction.atomic
def record_order_payment(
    *,
    order_id,
    amount,
    payment_method: str,
    order_number: str = "",
    client_name: str = "",
    account_id=None,
    date=None,
    actor=None,
) -> FinancialTransaction:
    """Service income received against a repair order."""
    number = (order_number or "").strip() or str(order_id)
    description = f"Pagamento OS #{number}"
    if client_name:
        description = f"{description} - {client_name.strip()}"

    return ledger_service.record(
        TransactionDraft.income(
            destination_account_id=_account_id_or_operating_cash(account_id),
            amount=money(amount),
            description=description,
            category=CATEGORY_SERVICES,
            reference_type=FinancialTransaction.REF_ORDER,
            reference_id=str(order_id),
            reference_number=number,
            payment_method=payment_method,
            date=date,
        ),
        actor=actor,
    )


@transaction.atomic
def record_product_sale(
    *,
    sale_id,
    amount,
    payment_method: str,
    sale_number: str = "",
    account_id=None,
    date=None,
    actor=None,
) -> FinancialTransaction:
    """Product sale income (counter sale, no repair order)."""
    number = (sale_number or "").strip() or str(sale_id)

    return ledger_service.record(
        TransactionDraft.income(
            destination_account_id=_account_id_or_operating_cash(account_id),
            amount=money(amount),
            description=f"Venda de produtos #{number}",
            category=CATEGORY_PRODUCTS,
            reference_type=FinancialTransaction.REF_SALE,
            reference_id=str(sale_id),
            reference_number=number,
            payment_method=payment_method,
            date=date,
        ),
        actor=actor,
    )


@transaction.atomic
def record_bill_payment(
    *,
    bill_id,
    amount,
    payment_method: str,
    supplier: str = "",
    description: str = "",
    category: str = "",
    account_id=None,
    date=None,
    actor=None,
) -> FinancialTransaction:
    """
    Bill paid: expense out of the paying account. Collaborators sometimes
    hand over the amount already negated; only the magnitude is used.
    """
    text = " ".join(p for p in ((supplier or "").strip(), (description or "").strip()) if p)

    return ledger_service.record(
        TransactionDraft.expense(
            source_account_id=_account_id_or_operating_cash(account_id),
            amount=abs(money(amount)),
            description=f"Pagamento conta - {text}" if text else "Pagamento conta",
            category=category,
            reference_type=FinancialTransaction.REF_BILL,
            reference_id=str(bill_id),
            reference_number=f"BILL-{bill_id}",
            payment_method=payment_method,
            date=date,
        ),
        actor=actor,
    )


def delete_bill_transactions(bill_id) -> int:
    """Called by the bill deletion flow before the bill row goes."""
    return ledger_service.delete_by_reference(FinancialTransaction.REF_BILL, bill_id)
