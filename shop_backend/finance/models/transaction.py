# finance/models/transaction.py

"""
======================================================
PATH: finance/models/transaction.py
======================================================
FINANCIAL TRANSACTION MODEL

One immutable, dated money movement.

Guarantees:
- income   -> destination set, source unset, amount > 0
- expense  -> source set, destination unset, amount < 0 (stored signed)
- transfer -> both accounts set and distinct, amount > 0
- Ledger fields (type, amount, accounts) never change once written,
  except through the ledger service's guarded manual update
- Rows are removed only by the ledger service (which reverses balances first)
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from finance.models.account import Account


class FinancialTransaction(models.Model):
    TYPE_INCOME = "income"
    TYPE_EXPENSE = "expense"
    TYPE_TRANSFER = "transfer"

    TYPE_CHOICES = [
        (TYPE_INCOME, "Income"),
        (TYPE_EXPENSE, "Expense"),
        (TYPE_TRANSFER, "Transfer"),
    ]

    REF_ORDER = "order"
    REF_SALE = "sale"
    REF_BILL = "bill"
    REF_MANUAL = "manual"
    REF_INITIAL_BALANCE = "initial_balance"
    REF_TRANSFER = "transfer"
    REF_REVERSAL = "reversal"

    REFERENCE_TYPES = [
        (REF_ORDER, "Order"),
        (REF_SALE, "Product sale"),
        (REF_BILL, "Bill"),
        (REF_MANUAL, "Manual entry"),
        (REF_INITIAL_BALANCE, "Initial balance"),
        (REF_TRANSFER, "Transfer"),
        (REF_REVERSAL, "Reversal"),
    ]

    # Fields that define the ledger effect of a row.
    LEDGER_FIELDS = ("type", "amount", "source_account_id", "destination_account_id")

    type = models.CharField(max_length=10, choices=TYPE_CHOICES)

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Signed: income > 0, expense < 0, transfer > 0",
    )

    description = models.CharField(max_length=255)
    category = models.CharField(max_length=100, blank=True, default="")

    reference_type = models.CharField(
        max_length=20,
        choices=REFERENCE_TYPES,
        default=REF_MANUAL,
    )
    reference_id = models.CharField(max_length=64, blank=True, null=True)
    reference_number = models.CharField(max_length=64, blank=True, default="")

    payment_method = models.CharField(max_length=50, blank=True, default="")

    date = models.DateField(
        default=timezone.localdate,
        help_text="Business date (local calendar date, not an instant)",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="financial_transactions",
    )

    source_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="outgoing_transactions",
    )
    destination_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="incoming_transactions",
    )

    reversal_of = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversed_by",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["date", "created_at", "id"]
        verbose_name = "Financial Transaction"
        verbose_name_plural = "Financial Transactions"
        indexes = [
            models.Index(fields=["date"], name="finance_fin_date_8a2c41_idx"),
            models.Index(fields=["type"], name="finance_fin_type_3b7d90_idx"),
            models.Index(fields=["created_at"], name="finance_fin_created_5e01b2_idx"),
            models.Index(fields=["reference_type", "reference_id"], name="finance_fin_referen_9c4a7f_idx"),
            models.Index(fields=["category"], name="finance_fin_categor_d2e6c3_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(
                        type="income",
                        amount__gt=0,
                        destination_account__isnull=False,
                        source_account__isnull=True,
                    )
                    | Q(
                        type="expense",
                        amount__lt=0,
                        source_account__isnull=False,
                        destination_account__isnull=True,
                    )
                    | (
                        Q(
                            type="transfer",
                            amount__gt=0,
                            source_account__isnull=False,
                            destination_account__isnull=False,
                        )
                        & ~Q(source_account=F("destination_account"))
                    )
                ),
                name="chk_financial_transaction_kind_shape",
            ),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} on {self.date} ({self.description})"

    @property
    def is_manual(self) -> bool:
        return self.reference_type == self.REF_MANUAL

    @property
    def magnitude(self):
        """Positive amount, as reported alongside the type tag."""
        return abs(self.amount)

    def account_effects(self) -> dict[int, object]:
        """
        Signed balance effect per account id.

        income: +amount on destination
        expense: amount (negative) on source
        transfer: -amount on source, +amount on destination
        """
        if self.type == self.TYPE_INCOME:
            return {self.destination_account_id: self.amount}
        if self.type == self.TYPE_EXPENSE:
            return {self.source_account_id: self.amount}
        return {
            self.source_account_id: -self.amount,
            self.destination_account_id: self.amount,
        }

    def clean(self):
        self.description = (self.description or "").strip()
        self.category = (self.category or "").strip()
        self.payment_method = (self.payment_method or "").strip()

        if not self.description:
            raise ValidationError("Transaction description is required")

        if self.type == self.TYPE_INCOME:
            if self.destination_account_id is None or self.source_account_id is not None:
                raise ValidationError("Income requires a destination account only")
            if self.amount is None or self.amount <= 0:
                raise ValidationError("Income amount must be > 0")
        elif self.type == self.TYPE_EXPENSE:
            if self.source_account_id is None or self.destination_account_id is not None:
                raise ValidationError("Expense requires a source account only")
            if self.amount is None or self.amount >= 0:
                raise ValidationError("Expense amount must be stored negative")
        elif self.type == self.TYPE_TRANSFER:
            if self.source_account_id is None or self.destination_account_id is None:
                raise ValidationError("Transfer requires source and destination accounts")
            if self.source_account_id == self.destination_account_id:
                raise ValidationError("Transfer accounts must differ")
            if self.amount is None or self.amount <= 0:
                raise ValidationError("Transfer amount must be > 0")
        else:
            raise ValidationError("Invalid transaction type")

    def save(self, *args, allow_ledger_update: bool = False, **kwargs):
        # Only the ledger service may rewrite an existing row (guarded manual update).
        if self.pk and not allow_ledger_update:
            raise ValidationError(
                "FinancialTransaction records are immutable; use the ledger service"
            )

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "FinancialTransaction records cannot be deleted directly; use the ledger service"
        )
