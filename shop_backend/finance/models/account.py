# finance/models/account.py

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Account(models.Model):
    """
    A named monetary bucket: a bank account or a cash drawer.

    Guarantees:
    - Names are unique and normalized (trimmed)
    - balance is a cache of the ledger; only the ledger service writes it
    - Accounts are never hard-deleted (soft-deactivated via is_active)
    """

    name = models.CharField(max_length=120, unique=True)

    bank_ref = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Optional bank profile reference (routing metadata only)",
    )

    balance = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Cached balance derived from the transaction ledger",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["is_active"], name="finance_acc_is_acti_4c1f2e_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_finance_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.balance})"

    def clean(self):
        self.name = (self.name or "").strip()
        self.bank_ref = (self.bank_ref or "").strip()

        if not self.name:
            raise ValidationError("Account name is required")

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False)
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Accounts cannot be deleted; deactivate them instead")
