# cash_register/tests/test_api.py

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from cash_register.services import session_service
from finance.services import posting

User = get_user_model()


class CashRegisterApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.manager = User.objects.create_user(email="gerente@example.com", password="pass", role="manager")
        self.cashier = User.objects.create_user(email="caixa@example.com", password="pass", role="cashier")
        self.technician = User.objects.create_user(
            email="tecnico@example.com", password="pass", role="technician"
        )

    def test_current_when_closed(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.get(reverse("cash-register-current"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(res.data["is_open"])
        self.assertIsNone(res.data["session"])
        self.assertEqual(res.data["expected_amount"], "0.00")

    def test_open_then_current_shows_live_expected(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post(reverse("cash-register-open"), {"opening_amount": "200.00"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["status"], "open")
        self.assertEqual(res.data["opened_by_email"], "caixa@example.com")

        posting.record_order_payment(order_id=1, amount="150.00", payment_method="Dinheiro")

        res = self.client.get(reverse("cash-register-current"))
        self.assertTrue(res.data["is_open"])
        self.assertEqual(res.data["expected_amount"], "350.00")

    def test_second_open_is_409(self):
        self.client.force_authenticate(self.cashier)
        self.client.post(reverse("cash-register-open"), {"opening_amount": "10.00"}, format="json")

        res = self.client.post(reverse("cash-register-open"), {"opening_amount": "10.00"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["code"], "ConflictError")

    def test_negative_opening_is_400(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.post(reverse("cash-register-open"), {"opening_amount": "-5.00"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cashier_cannot_close(self):
        session = session_service.open_session(opening_amount="10.00", actor=self.cashier)
        self.client.force_authenticate(self.cashier)

        res = self.client.post(
            reverse("cash-register-close", args=[session.id]), {"counted_amount": "10.00"}, format="json"
        )

        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        session.refresh_from_db()
        self.assertTrue(session.is_open)

    def test_manager_closes_with_difference(self):
        session = session_service.open_session(opening_amount="200.00", actor=self.cashier)
        posting.record_order_payment(order_id=1, amount="150.00", payment_method="Dinheiro")
        posting.record_bill_payment(bill_id=1, amount="30.00", payment_method="Dinheiro")
        self.client.force_authenticate(self.manager)

        res = self.client.post(
            reverse("cash-register-close", args=[session.id]),
            {"counted_amount": "310.00", "notes": "faltou troco"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], "closed")
        self.assertEqual(res.data["expected_amount"], "320.00")
        self.assertEqual(res.data["difference"], "-10.00")
        self.assertEqual(res.data["closed_by_email"], "gerente@example.com")
        self.assertEqual(res.data["notes"], "faltou troco")

    def test_close_unknown_session_is_404(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(
            reverse("cash-register-close", args=[999]), {"counted_amount": "0.00"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_history(self):
        session = session_service.open_session(opening_amount="10.00", actor=self.cashier)
        session_service.close_session(session.id, counted_amount="10.00", actor=self.manager)
        self.client.force_authenticate(self.cashier)

        res = self.client.get(reverse("cash-register-sessions"), {"limit": "5"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data), 1)
        self.assertEqual(res.data[0]["difference"], "0.00")

    def test_bad_limit_is_400(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.get(reverse("cash-register-sessions"), {"limit": "lots"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_technician_has_no_drawer_access(self):
        self.client.force_authenticate(self.technician)
        res = self.client.get(reverse("cash-register-current"))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
