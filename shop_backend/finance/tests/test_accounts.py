# finance/tests/test_accounts.py

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings

from finance.models.account import Account
from finance.services import account_service, transfer_service
from finance.services.exceptions import (
    AccountHasBalance,
    ConflictError,
    FinanceValidationError,
    InvalidAmount,
    NotFoundError,
    ProtectedAccount,
)


class AccountLifecycleTests(TestCase):
    def test_create_normalizes_name(self):
        acc = account_service.create_account(name="  Banco   do  Brasil ", bank_ref=" bb-01 ")
        self.assertEqual(acc.name, "Banco do Brasil")
        self.assertEqual(acc.bank_ref, "bb-01")
        self.assertEqual(acc.balance, Decimal("0.00"))
        self.assertTrue(acc.is_active)

    def test_duplicate_name_is_conflict_case_insensitive(self):
        account_service.create_account(name="Nubank")
        with self.assertRaises(ConflictError):
            account_service.create_account(name="NUBANK")

    def test_blank_name_rejected(self):
        with self.assertRaises(FinanceValidationError):
            account_service.create_account(name="   ")

    def test_negative_opening_balance_rejected(self):
        with self.assertRaises(InvalidAmount):
            account_service.create_account(name="Conta", opening_balance=Decimal("-1.00"))
        self.assertFalse(Account.objects.filter(name="Conta").exists())

    def test_name_too_long_is_a_validation_error(self):
        with self.assertRaises(FinanceValidationError):
            account_service.create_account(name="x" * 200)
        self.assertFalse(Account.objects.exists())

    def test_opening_balance_out_of_range_rejected(self):
        for bad in ("1e30", Decimal("1000000000000.00")):
            with self.assertRaises(InvalidAmount):
                account_service.create_account(name="Conta", opening_balance=bad)
        self.assertFalse(Account.objects.exists())

    def test_rename_too_long_is_a_validation_error(self):
        acc = account_service.create_account(name="Itau")
        with self.assertRaises(FinanceValidationError):
            account_service.update_account(acc.id, name="y" * 200)
        acc.refresh_from_db()
        self.assertEqual(acc.name, "Itau")

    def test_rename_and_relink(self):
        acc = account_service.create_account(name="Conta Velha")
        acc = account_service.update_account(acc.id, name="Conta Nova", bank_ref="itau-77")
        self.assertEqual(acc.name, "Conta Nova")
        self.assertEqual(acc.bank_ref, "itau-77")

    def test_rename_onto_existing_name_is_conflict(self):
        account_service.create_account(name="A")
        b = account_service.create_account(name="B")
        with self.assertRaises(ConflictError):
            account_service.update_account(b.id, name="a")

    def test_rename_to_reserved_name_forbidden(self):
        acc = account_service.create_account(name="Conta")
        with self.assertRaises(ProtectedAccount):
            account_service.update_account(acc.id, name="Cofre")

    def test_update_unknown_account(self):
        with self.assertRaises(NotFoundError):
            account_service.update_account(31337, name="x")

    def test_deactivate_at_zero(self):
        acc = account_service.create_account(name="Poupança")
        acc = account_service.deactivate_account(acc.id)

        self.assertFalse(acc.is_active)
        self.assertNotIn(acc, list(account_service.list_accounts()))
        self.assertIn(acc, list(account_service.list_accounts(include_inactive=True)))

    def test_deactivate_with_balance_is_rejected(self):
        acc = account_service.create_account(name="Poupança", opening_balance=Decimal("0.01"))
        with self.assertRaises(AccountHasBalance):
            account_service.deactivate_account(acc.id)

        acc.refresh_from_db()
        self.assertTrue(acc.is_active)

    def test_deactivate_after_emptying(self):
        acc = account_service.create_account(name="Poupança", opening_balance=Decimal("30.00"))
        other = account_service.create_account(name="Corrente")
        transfer_service.transfer(source_id=acc.id, destination_id=other.id, amount="30.00")

        self.assertFalse(account_service.deactivate_account(acc.id).is_active)

    def test_accounts_are_never_hard_deleted(self):
        acc = account_service.create_account(name="Conta")
        with self.assertRaises(ValidationError):
            acc.delete()


class SystemAccountTests(TestCase):
    def test_system_accounts_are_created_lazily_once(self):
        self.assertFalse(Account.objects.exists())

        cash = account_service.get_operating_cash_account()
        again = account_service.get_operating_cash_account()
        vault = account_service.get_vault_account()

        self.assertEqual(cash.id, again.id)
        self.assertEqual(cash.name, "Caixa Loja")
        self.assertEqual(vault.name, "Cofre")
        self.assertEqual(Account.objects.count(), 2)

    def test_ensure_system_accounts_is_idempotent(self):
        account_service.ensure_system_accounts()
        account_service.ensure_system_accounts()
        self.assertEqual(Account.objects.count(), 2)

    def test_existing_account_is_reused_case_insensitively(self):
        existing = account_service.create_account(name="caixa loja")
        self.assertEqual(account_service.get_operating_cash_account().id, existing.id)

    def test_protected_accounts_cannot_be_deactivated(self):
        for acc in account_service.ensure_system_accounts():
            with self.assertRaises(ProtectedAccount):
                account_service.deactivate_account(acc.id)

    def test_protected_accounts_cannot_be_renamed_or_linked(self):
        cash = account_service.get_operating_cash_account()
        with self.assertRaises(ProtectedAccount):
            account_service.update_account(cash.id, name="Gaveta")
        with self.assertRaises(ProtectedAccount):
            account_service.update_account(cash.id, bank_ref="itau-1")

    def test_legacy_drawer_name_is_protected(self):
        legacy = account_service.create_account(name="Caixa")
        self.assertTrue(account_service.is_protected(legacy))

    @override_settings(
        FINANCE={
            "OPERATING_CASH_ACCOUNT_NAME": "Gaveta",
            "VAULT_ACCOUNT_NAME": "Cofre Forte",
            "PROTECTED_ACCOUNT_NAMES": [],
            "CASH_PAYMENT_KEYWORDS": ["dinheiro"],
            "ALLOW_NEGATIVE_EXPENSE_BALANCE": True,
        }
    )
    def test_names_come_from_settings(self):
        self.assertEqual(account_service.get_operating_cash_account().name, "Gaveta")
        self.assertEqual(account_service.get_vault_account().name, "Cofre Forte")


class BalanceOverviewTests(TestCase):
    def test_overview_totals_active_accounts(self):
        cash = account_service.get_operating_cash_account()
        bank = account_service.create_account(name="Banco", opening_balance=Decimal("250.00"))
        transfer_service.transfer(source_id=bank.id, destination_id=cash.id, amount="50.00")
        closed = account_service.create_account(name="Encerrada")
        account_service.deactivate_account(closed.id)

        overview = account_service.balance_overview()

        self.assertEqual(overview["total"], Decimal("250.00"))
        self.assertEqual(overview["cash"], Decimal("50.00"))
        self.assertEqual({a["name"] for a in overview["accounts"]}, {"Banco", "Caixa Loja"})
