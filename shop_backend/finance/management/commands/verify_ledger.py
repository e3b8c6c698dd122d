# finance/management/commands/verify_ledger.py

from __future__ import annotations

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db.models import Sum

from finance.models.account import Account
from finance.models.transaction import FinancialTransaction
from finance.services.account_service import verify_balances


class Command(BaseCommand):
    help = "Check every cached account balance against a replay of the transaction ledger."

    def add_arguments(self, parser):
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any mismatch is found.",
        )

    def handle(self, *args, **options):
        strict = bool(options.get("strict"))
        errors = 0

        self.stdout.write(self.style.MIGRATE_HEADING("Ledger → Account balance verification"))
        self.stdout.write(f"Accounts:     {Account.objects.count()}")
        self.stdout.write(f"Transactions: {FinancialTransaction.objects.count()}")
        self.stdout.write("")

        # -----------------------------
        # 1) Per-account replay
        # -----------------------------
        mismatches = verify_balances()
        if mismatches:
            errors += len(mismatches)
            self.stderr.write(self.style.ERROR(f"[FAIL] Balance mismatches: {len(mismatches)}"))
            for m in mismatches[:20]:
                self.stderr.write(
                    f"  account_id={m['account_id']} name={m['name']!r} "
                    f"cached={m['cached_balance']} ledger={m['ledger_balance']} "
                    f"difference={m['difference']}"
                )
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Every cached balance matches the ledger"))

        # -----------------------------
        # 2) Conservation: transfers net to zero, so the system total
        #    equals income plus (negative) expenses.
        # -----------------------------
        total_balance = Account.objects.aggregate(total=Sum("balance"))["total"] or Decimal("0.00")
        net_flow = (
            FinancialTransaction.objects.exclude(type=FinancialTransaction.TYPE_TRANSFER).aggregate(
                total=Sum("amount")
            )["total"]
            or Decimal("0.00")
        )

        if total_balance != net_flow:
            errors += 1
            self.stderr.write(
                self.style.ERROR(
                    f"[FAIL] System total {total_balance} != income/expense net {net_flow}"
                )
            )
        else:
            self.stdout.write(self.style.SUCCESS(f"[OK] System total {total_balance} matches net flow"))

        self.stdout.write("")
        if errors == 0:
            self.stdout.write(self.style.SUCCESS("VALIDATION PASSED"))
        else:
            self.stderr.write(self.style.ERROR(f"VALIDATION FOUND ISSUES: {errors} problem(s)"))

        return self._exit(strict and errors > 0)

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
