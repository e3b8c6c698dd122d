# cash_register/tests/test_sessions.py

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from cash_register.models import CashRegisterSession
from cash_register.services import session_service
from finance.models.transaction import FinancialTransaction
from finance.services import account_service, posting, transfer_service
from finance.services.exceptions import (
    ConflictError,
    FinanceValidationError,
    ForbiddenOperation,
    InvalidAmount,
    NotFoundError,
)

User = get_user_model()


class CashRegisterSessionTests(TestCase):
    """
    GUARANTEES:
    - At most one open session
    - expected = opening + cash movements since opening
    - Close is privileged; the difference is stored as computed
    """

    def setUp(self):
        self.manager = User.objects.create_user(email="gerente@example.com", password="pass", role="manager")
        self.attendant = User.objects.create_user(
            email="balcao@example.com", password="pass", role="attendant"
        )
        self.cash = account_service.get_operating_cash_account()

    def _cash_income(self, amount, method="Dinheiro", ref=1):
        return posting.record_order_payment(order_id=ref, amount=amount, payment_method=method)

    def _cash_expense(self, amount, method="Dinheiro", ref=1):
        return posting.record_bill_payment(bill_id=ref, amount=amount, payment_method=method)

    # --------------------------------------------------
    # Open
    # --------------------------------------------------

    def test_open_creates_single_open_session_without_ledger_rows(self):
        session = session_service.open_session(opening_amount="200.00", actor=self.attendant)

        self.assertTrue(session.is_open)
        self.assertEqual(session.opening_amount, Decimal("200.00"))
        self.assertEqual(session.opened_by, self.attendant)
        self.assertEqual(session_service.current().id, session.id)
        self.assertFalse(FinancialTransaction.objects.exists())

    def test_second_open_is_conflict(self):
        session_service.open_session(opening_amount="200.00", actor=self.attendant)

        with self.assertRaises(ConflictError):
            session_service.open_session(opening_amount="10.00", actor=self.attendant)

        self.assertEqual(CashRegisterSession.objects.filter(status="open").count(), 1)

    def test_negative_opening_rejected(self):
        with self.assertRaises(InvalidAmount):
            session_service.open_session(opening_amount="-1.00", actor=self.attendant)
        self.assertIsNone(session_service.current())

    def test_opening_amount_out_of_range_is_a_validation_error(self):
        for bad in ("1e15", "1e30"):
            with self.assertRaises(FinanceValidationError):
                session_service.open_session(opening_amount=bad, actor=self.attendant)
        self.assertIsNone(session_service.current())

    def test_zero_opening_allowed(self):
        session = session_service.open_session(opening_amount="0", actor=self.attendant)
        self.assertEqual(session.opening_amount, Decimal("0.00"))

    # --------------------------------------------------
    # Expected amount + close
    # --------------------------------------------------

    def test_close_reconciles_with_zero_difference(self):
        session = session_service.open_session(opening_amount="200.00", actor=self.attendant)
        self._cash_income("150.00")
        self._cash_expense("30.00")

        self.assertEqual(session_service.expected_amount(session), Decimal("320.00"))

        closed = session_service.close_session(session.id, counted_amount="320.00", actor=self.manager)

        self.assertEqual(closed.status, CashRegisterSession.STATUS_CLOSED)
        self.assertEqual(closed.expected_amount, Decimal("320.00"))
        self.assertEqual(closed.closing_amount, Decimal("320.00"))
        self.assertEqual(closed.difference, Decimal("0.00"))
        self.assertEqual(closed.closed_by, self.manager)
        self.assertIsNotNone(closed.closed_at)
        self.assertIsNone(session_service.current())

    def test_nonzero_difference_is_recorded_not_rejected(self):
        session = session_service.open_session(opening_amount="100.00", actor=self.attendant)
        self._cash_income("50.00")

        closed = session_service.close_session(session.id, counted_amount="145.00", actor=self.manager)

        self.assertEqual(closed.expected_amount, Decimal("150.00"))
        self.assertEqual(closed.difference, Decimal("-5.00"))

    def test_non_cash_methods_do_not_count(self):
        session = session_service.open_session(opening_amount="100.00", actor=self.attendant)
        self._cash_income("40.00", method="Pix", ref=2)
        self._cash_income("60.00", method="Cartão de Débito", ref=3)
        self._cash_income("10.00", method="Cash", ref=4)

        self.assertEqual(session_service.expected_amount(session), Decimal("110.00"))

    def test_movements_before_opening_do_not_count(self):
        self._cash_income("999.00")
        session = session_service.open_session(opening_amount="100.00", actor=self.attendant)

        self.assertEqual(session_service.expected_amount(session), Decimal("100.00"))

    def test_transfers_touching_the_drawer_count(self):
        self._cash_income("300.00")
        session = session_service.open_session(opening_amount="300.00", actor=self.attendant)

        vault = account_service.get_vault_account()
        transfer_service.transfer(source_id=self.cash.id, destination_id=vault.id, amount="120.00")
        transfer_service.transfer(source_id=vault.id, destination_id=self.cash.id, amount="20.00")

        self.assertEqual(session_service.expected_amount(session), Decimal("200.00"))

    def test_close_without_privilege_is_forbidden(self):
        session = session_service.open_session(opening_amount="100.00", actor=self.attendant)

        with self.assertRaises(ForbiddenOperation):
            session_service.close_session(session.id, counted_amount="100.00", actor=self.attendant)

        session.refresh_from_db()
        self.assertTrue(session.is_open)

    def test_close_closed_session_is_conflict(self):
        session = session_service.open_session(opening_amount="100.00", actor=self.attendant)
        session_service.close_session(session.id, counted_amount="100.00", actor=self.manager)

        with self.assertRaises(ConflictError):
            session_service.close_session(session.id, counted_amount="100.00", actor=self.manager)

    def test_close_with_nothing_open_is_not_found(self):
        with self.assertRaises(NotFoundError):
            session_service.close_session(counted_amount="0", actor=self.manager)
        with self.assertRaises(NotFoundError):
            session_service.close_session(5150, counted_amount="0", actor=self.manager)

    def test_close_current_when_no_id_given(self):
        session = session_service.open_session(opening_amount="50.00", actor=self.attendant)
        closed = session_service.close_session(counted_amount="50.00", actor=self.manager)
        self.assertEqual(closed.id, session.id)

    def test_negative_count_rejected(self):
        session = session_service.open_session(opening_amount="50.00", actor=self.attendant)
        with self.assertRaises(InvalidAmount):
            session_service.close_session(session.id, counted_amount="-0.01", actor=self.manager)

    def test_expected_amount_too_large_to_store_is_a_validation_error(self):
        session = session_service.open_session(opening_amount="0.00", actor=self.attendant)
        for ref, name in ((1, "Banco A"), (2, "Banco B")):
            account = account_service.create_account(name=name)
            posting.record_order_payment(
                order_id=ref, amount="600000000000.00", payment_method="Dinheiro", account_id=account.id
            )

        with self.assertRaises(FinanceValidationError):
            session_service.close_session(session.id, counted_amount="1.00", actor=self.manager)

        session.refresh_from_db()
        self.assertTrue(session.is_open)
        self.assertIsNone(session.expected_amount)

    def test_reopen_after_close(self):
        first = session_service.open_session(opening_amount="50.00", actor=self.attendant)
        session_service.close_session(first.id, counted_amount="50.00", actor=self.manager)

        second = session_service.open_session(opening_amount="80.00", actor=self.attendant)

        self.assertNotEqual(first.id, second.id)
        self.assertEqual(session_service.current().id, second.id)

    # --------------------------------------------------
    # Immutability + reads
    # --------------------------------------------------

    def test_closed_session_is_immutable(self):
        session = session_service.open_session(opening_amount="50.00", actor=self.attendant)
        closed = session_service.close_session(session.id, counted_amount="50.00", actor=self.manager)

        closed.notes = "editado"
        with self.assertRaises(ValidationError):
            closed.save()
        with self.assertRaises(ValidationError):
            closed.delete()

    def test_closed_expected_amount_is_frozen(self):
        session = session_service.open_session(opening_amount="50.00", actor=self.attendant)
        closed = session_service.close_session(session.id, counted_amount="50.00", actor=self.manager)

        self._cash_income("500.00")

        self.assertEqual(session_service.expected_amount(closed), Decimal("50.00"))

    def test_current_cash_balance(self):
        self.assertEqual(session_service.current_cash_balance(), Decimal("0.00"))

        session_service.open_session(opening_amount="75.00", actor=self.attendant)
        self._cash_income("25.00")

        self.assertEqual(session_service.current_cash_balance(), Decimal("100.00"))

    def test_history_newest_first(self):
        first = session_service.open_session(opening_amount="10.00", actor=self.attendant)
        session_service.close_session(first.id, counted_amount="10.00", actor=self.manager)
        second = session_service.open_session(opening_amount="20.00", actor=self.attendant)

        self.assertEqual([s.id for s in session_service.history()], [second.id, first.id])
        self.assertEqual(len(session_service.history(limit=1)), 1)
