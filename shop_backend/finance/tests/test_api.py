# finance/tests/test_api.py

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from finance.models.account import Account
from finance.models.transaction import FinancialTransaction
from finance.services import account_service, posting

User = get_user_model()


class FinanceApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.admin = User.objects.create_user(email="admin@example.com", password="pass", role="admin")
        self.manager = User.objects.create_user(email="manager@example.com", password="pass", role="manager")
        self.cashier = User.objects.create_user(email="cashier@example.com", password="pass", role="cashier")
        self.technician = User.objects.create_user(
            email="tech@example.com", password="pass", role="technician"
        )

    def as_user(self, user):
        self.client.force_authenticate(user=user)
        return self.client


class AccountApiTests(FinanceApiTestCase):
    def test_anonymous_is_rejected(self):
        res = self.client.get(reverse("finance-accounts"))
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_role_without_capability_is_forbidden(self):
        res = self.as_user(self.technician).get(reverse("finance-accounts"))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_cashier_can_list_but_not_create(self):
        client = self.as_user(self.cashier)

        self.assertEqual(client.get(reverse("finance-accounts")).status_code, status.HTTP_200_OK)
        res = client.post(reverse("finance-accounts"), {"name": "Conta"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_account_with_opening_balance(self):
        res = self.as_user(self.admin).post(
            reverse("finance-accounts"),
            {"name": "Caixa Loja", "opening_balance": "500.00"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["balance"], "500.00")
        self.assertTrue(res.data["is_protected"])
        self.assertEqual(
            FinancialTransaction.objects.filter(
                reference_type=FinancialTransaction.REF_INITIAL_BALANCE
            ).count(),
            1,
        )

    def test_duplicate_name_maps_to_409(self):
        account_service.create_account(name="Nubank")
        res = self.as_user(self.admin).post(reverse("finance-accounts"), {"name": "nubank"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["code"], "ConflictError")

    def test_negative_opening_balance_is_400(self):
        res = self.as_user(self.admin).post(
            reverse("finance-accounts"), {"name": "X", "opening_balance": "-1.00"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_balance_is_not_writable(self):
        acc = account_service.create_account(name="Banco")
        res = self.as_user(self.admin).patch(
            reverse("finance-account-detail", args=[acc.id]),
            {"name": "Banco Central", "balance": "1000000.00"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        acc.refresh_from_db()
        self.assertEqual(acc.name, "Banco Central")
        self.assertEqual(acc.balance, Decimal("0.00"))

    def test_deactivate_protected_is_403(self):
        cash = account_service.get_operating_cash_account()
        res = self.as_user(self.admin).post(reverse("finance-account-deactivate", args=[cash.id]))

        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(res.data["code"], "ProtectedAccount")

    def test_deactivate_with_balance_is_409(self):
        acc = account_service.create_account(name="Banco", opening_balance=Decimal("10.00"))
        res = self.as_user(self.admin).post(reverse("finance-account-deactivate", args=[acc.id]))
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

    def test_unknown_account_is_404(self):
        res = self.as_user(self.manager).get(reverse("finance-account-detail", args=[999]))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)


class TransactionApiTests(FinanceApiTestCase):
    def setUp(self):
        super().setUp()
        self.bank = account_service.create_account(name="Banco", opening_balance=Decimal("100.00"))

    def test_manual_entry_and_listing_with_running_balance(self):
        client = self.as_user(self.manager)

        res = client.post(
            reverse("finance-transactions"),
            {
                "type": "expense",
                "amount": "30.00",
                "account_id": self.bank.id,
                "description": "Compra de cola",
                "category": "Material",
                "payment_method": "Pix",
            },
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["amount"], "30.00")
        self.assertEqual(res.data["signed_amount"], "-30.00")

        res = client.get(reverse("finance-transactions"))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        results = res.data["results"]

        self.assertEqual(res.data["count"], 2)
        self.assertEqual(results[0]["description"], "Compra de cola")
        self.assertEqual(results[0]["running_balance"], "70.00")
        self.assertEqual(results[1]["running_balance"], "100.00")

    def test_listing_filters(self):
        posting.record_order_payment(order_id=1, amount="50.00", payment_method="Dinheiro", account_id=self.bank.id)
        client = self.as_user(self.cashier)

        services = client.get(reverse("finance-transactions"), {"source": "services"}).data["results"]
        self.assertEqual([r["reference_type"] for r in services], ["order"])

        cash = client.get(reverse("finance-transactions"), {"payment_method": "Dinheiro"}).data["results"]
        self.assertEqual(len(cash), 1)

    def test_listing_rejects_inverted_range_and_bad_source(self):
        client = self.as_user(self.cashier)

        res = client.get(reverse("finance-transactions"), {"start": "2024-05-10", "end": "2024-05-01"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

        res = client.get(reverse("finance-transactions"), {"source": "bogus"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cashier_cannot_post_entries(self):
        res = self.as_user(self.cashier).post(
            reverse("finance-transactions"),
            {"type": "income", "amount": "1.00", "account_id": self.bank.id, "description": "x"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_manual_entry_rejects_transfer_kind_and_zero_amount(self):
        client = self.as_user(self.manager)
        for payload in (
            {"type": "transfer", "amount": "1.00", "account_id": self.bank.id, "description": "x"},
            {"type": "income", "amount": "0.00", "account_id": self.bank.id, "description": "x"},
        ):
            res = client.post(reverse("finance-transactions"), payload, format="json")
            self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_order_payment_is_forbidden(self):
        txn = posting.record_order_payment(order_id=3, amount="20.00", payment_method="Pix", account_id=self.bank.id)

        res = self.as_user(self.manager).delete(reverse("finance-transaction-detail", args=[txn.id]))

        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(FinancialTransaction.objects.filter(id=txn.id).exists())

    def test_patch_and_delete_manual_entry(self):
        client = self.as_user(self.manager)
        created = client.post(
            reverse("finance-transactions"),
            {"type": "income", "amount": "10.00", "account_id": self.bank.id, "description": "Troco"},
            format="json",
        ).data
        url = reverse("finance-transaction-detail", args=[created["id"]])

        res = client.patch(url, {"amount": "25.00", "type": "expense"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["signed_amount"], "-25.00")
        self.assertEqual(res.data["source_account_id"], self.bank.id)
        self.bank.refresh_from_db()
        self.assertEqual(self.bank.balance, Decimal("75.00"))

        res = client.delete(url)
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.bank.refresh_from_db()
        self.assertEqual(self.bank.balance, Decimal("100.00"))

    def test_reverse_endpoint(self):
        txn = posting.record_order_payment(order_id=4, amount="20.00", payment_method="Pix", account_id=self.bank.id)
        client = self.as_user(self.manager)

        res = client.post(reverse("finance-transaction-reverse", args=[txn.id]), {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["reversal_of_id"], txn.id)

        res = client.post(reverse("finance-transaction-reverse", args=[txn.id]), {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)


class TransferApiTests(FinanceApiTestCase):
    def setUp(self):
        super().setUp()
        self.a = account_service.create_account(name="A", opening_balance=Decimal("100.00"))
        self.b = account_service.create_account(name="B")

    def test_transfer_created(self):
        res = self.as_user(self.manager).post(
            reverse("finance-transfers"),
            {"source_account_id": self.a.id, "destination_account_id": self.b.id, "amount": "60.00"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["type"], "transfer")
        self.assertEqual(Account.objects.get(id=self.a.id).balance, Decimal("40.00"))
        self.assertEqual(Account.objects.get(id=self.b.id).balance, Decimal("60.00"))

    def test_insufficient_funds_is_409(self):
        res = self.as_user(self.manager).post(
            reverse("finance-transfers"),
            {"source_account_id": self.a.id, "destination_account_id": self.b.id, "amount": "150.00"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["code"], "InsufficientFunds")
        self.assertEqual(Account.objects.get(id=self.a.id).balance, Decimal("100.00"))

    def test_same_account_is_400(self):
        res = self.as_user(self.manager).post(
            reverse("finance-transfers"),
            {"source_account_id": self.a.id, "destination_account_id": self.a.id, "amount": "1.00"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cashier_cannot_transfer(self):
        res = self.as_user(self.cashier).post(
            reverse("finance-transfers"),
            {"source_account_id": self.a.id, "destination_account_id": self.b.id, "amount": "1.00"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)


class ReportApiTests(FinanceApiTestCase):
    def setUp(self):
        super().setUp()
        bank = account_service.create_account(name="Banco")
        posting.record_order_payment(
            order_id=1, amount="80.00", payment_method="Pix", account_id=bank.id, date="2024-06-10"
        )
        posting.record_bill_payment(
            bill_id=1, amount="30.00", payment_method="Pix", account_id=bank.id, date="2024-06-11",
            category="Aluguel",
        )

    def test_summary(self):
        res = self.as_user(self.cashier).get(
            reverse("finance-report-summary"), {"start": "2024-06-01", "end": "2024-06-30"}
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["total_income"], "80.00")
        self.assertEqual(res.data["total_expenses"], "30.00")
        self.assertEqual(res.data["net_balance"], "50.00")

    def test_cash_flow_series(self):
        res = self.as_user(self.cashier).get(
            reverse("finance-report-cash-flow"), {"start": "2024-06-10", "end": "2024-06-12"}
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([r["running_balance"] for r in res.data], ["80.00", "50.00", "50.00"])

    def test_daily_and_categories(self):
        client = self.as_user(self.cashier)

        daily = client.get(reverse("finance-report-daily"), {"date": "2024-06-10"}).data
        self.assertEqual(daily["income"], "80.00")

        categories = client.get(
            reverse("finance-report-categories"), {"start": "2024-06-01", "end": "2024-06-30"}
        ).data
        self.assertEqual([c["category"] for c in categories], ["Serviços", "Aluguel"])

    def test_bad_dates_are_400(self):
        res = self.as_user(self.cashier).get(
            reverse("finance-report-summary"), {"start": "2024-06-30", "end": "2024-06-01"}
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_balances(self):
        res = self.as_user(self.cashier).get(reverse("finance-report-balances"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["total"], "50.00")

    def test_technician_cannot_read_reports(self):
        res = self.as_user(self.technician).get(reverse("finance-report-summary"))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
