# cash_register/models.py

"""
======================================================
PATH: cash_register/models.py
======================================================
CASH REGISTER SESSION (ONE DRAWER SHIFT)

State machine: open -> closed. Never reopened, never deleted.

Guarantees:
- At most one open session at any time (partial unique constraint)
- expected_amount / difference are written once, at close, and kept as-is
  even when difference != 0
- The opening float is a physical count, not a ledger movement
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone


class CashRegisterSession(models.Model):
    STATUS_OPEN = "open"
    STATUS_CLOSED = "closed"

    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_CLOSED, "Closed"),
    ]

    opened_at = models.DateTimeField(default=timezone.now)
    closed_at = models.DateTimeField(null=True, blank=True)

    opening_amount = models.DecimalField(max_digits=14, decimal_places=2)
    closing_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Counted cash at close",
    )
    expected_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Opening amount plus cash movements during the shift",
    )
    difference = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="closing_amount - expected_amount (negative = drawer short)",
    )

    opened_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="opened_cash_sessions",
    )
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="closed_cash_sessions",
    )

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_OPEN)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-opened_at", "-id"]
        verbose_name = "Cash Register Session"
        verbose_name_plural = "Cash Register Sessions"
        indexes = [
            models.Index(fields=["opened_at"], name="cash_regist_opened__7f3a1c_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["status"],
                condition=Q(status="open"),
                name="uniq_cash_register_single_open_session",
            ),
            models.CheckConstraint(
                condition=Q(opening_amount__gte=0),
                name="chk_cash_register_opening_amount_non_negative",
            ),
        ]

    def __str__(self):
        return f"Session #{self.pk} ({self.status}) opened {self.opened_at:%Y-%m-%d %H:%M}"

    @property
    def is_open(self) -> bool:
        return self.status == self.STATUS_OPEN

    def clean(self):
        self.notes = (self.notes or "").strip()

        if self.opening_amount is not None and self.opening_amount < Decimal("0.00"):
            raise ValidationError("Opening amount cannot be negative")

        if self.status == self.STATUS_CLOSED:
            if self.closed_at is None or self.closing_amount is None or self.expected_amount is None:
                raise ValidationError("A closed session needs closed_at, closing and expected amounts")

    def save(self, *args, **kwargs):
        if self.pk:
            previous = (
                CashRegisterSession.objects.filter(pk=self.pk).values_list("status", flat=True).first()
            )
            if previous == self.STATUS_CLOSED:
                raise ValidationError("Closed cash register sessions are immutable")

        # The single-open rule is enforced by the database constraint.
        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Cash register sessions cannot be deleted")
