# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- In-memory SQLite by default, fast password hashing
- TEST_DATABASE_URL points the suite at PostgreSQL, where the row-lock
  tests (select_for_update) actually run
- No throttling (API tests fire many requests per second)
- FINANCE pinned to the shipped defaults so a developer's .env cannot
  change test outcomes
- finance / cash_register loggers quieted to WARNING
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, REST_FRAMEWORK, env  # explicit for Ruff (F405)

DEBUG = False
SECRET_KEY = "test-secret-key-not-for-production"
TIME_ZONE = "America/Sao_Paulo"

DATABASES = {
    "default": env.db("TEST_DATABASE_URL", default="sqlite://:memory:"),
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

FINANCE = {
    "OPERATING_CASH_ACCOUNT_NAME": "Caixa Loja",
    "VAULT_ACCOUNT_NAME": "Cofre",
    "PROTECTED_ACCOUNT_NAMES": ["Caixa Loja", "Cofre", "Caixa"],
    "CASH_PAYMENT_KEYWORDS": ["dinheiro", "cash"],
    "ALLOW_NEGATIVE_EXPENSE_BALANCE": True,
}

for _name in ("finance", "cash_register"):
    LOGGING["loggers"][_name]["level"] = "WARNING"
