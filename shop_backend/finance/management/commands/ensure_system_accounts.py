# finance/management/commands/ensure_system_accounts.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from finance.services.account_service import ensure_system_accounts


class Command(BaseCommand):
    help = "Create the operating cash and vault accounts if they are missing (idempotent)."

    def handle(self, *args, **options):
        for account in ensure_system_accounts():
            self.stdout.write(
                self.style.SUCCESS(f"[OK] {account.name} (id={account.id}, balance={account.balance})")
            )
