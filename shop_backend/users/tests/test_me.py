# users/tests/test_me.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

User = get_user_model()


class MeEndpointTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_requires_authentication(self):
        res = self.client.get(reverse("users:me"))
        self.assertEqual(res.status_code, 401)

    def test_cashier_profile_and_capabilities(self):
        user = User.objects.create_user(email="caixa@example.com", password="pass", role="cashier")
        self.client.force_authenticate(user)

        res = self.client.get(reverse("users:me"))

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["email"], "caixa@example.com")
        self.assertEqual(res.data["role"], "cashier")
        self.assertEqual(res.data["capabilities"], ["cash.operate", "finance.view"])

    def test_superuser_holds_every_capability(self):
        user = User.objects.create_superuser(email="root@example.com", password="pass")
        self.client.force_authenticate(user)

        caps = self.client.get(reverse("users:me")).data["capabilities"]

        self.assertIn("cash.close", caps)
        self.assertIn("finance.accounts", caps)

    def test_jwt_login_by_email(self):
        User.objects.create_user(email="gerente@example.com", password="segredo123", role="manager")

        res = self.client.post(
            reverse("jwt-create"),
            {"email": "gerente@example.com", "password": "segredo123"},
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.assertIn("access", res.data)
        self.assertIn("refresh", res.data)


class UserManagerTests(TestCase):
    def test_username_derived_from_email(self):
        user = User.objects.create_user(email="Joao.Silva@Example.com", password="x")
        self.assertEqual(user.username, "joao.silva")
        self.assertEqual(user.role, User.ROLE_ATTENDANT)

    def test_username_is_made_unique(self):
        User.objects.create_user(email="ana@a.com", password="x")
        second = User.objects.create_user(email="ana@b.com", password="x")
        self.assertEqual(second.username, "ana2")

    def test_requires_email_or_username(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(password="x")
