from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, unique=True)),
                (
                    "bank_ref",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Optional bank profile reference (routing metadata only)",
                        max_length=64,
                    ),
                ),
                (
                    "balance",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Cached balance derived from the transaction ledger",
                        max_digits=14,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Account",
                "verbose_name_plural": "Accounts",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["is_active"], name="finance_acc_is_acti_4c1f2e_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("name", ""), _negated=True),
                        name="chk_finance_account_name_not_blank",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="FinancialTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "type",
                    models.CharField(
                        choices=[("income", "Income"), ("expense", "Expense"), ("transfer", "Transfer")],
                        max_length=10,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Signed: income > 0, expense < 0, transfer > 0",
                        max_digits=14,
                    ),
                ),
                ("description", models.CharField(max_length=255)),
                ("category", models.CharField(blank=True, default="", max_length=100)),
                (
                    "reference_type",
                    models.CharField(
                        choices=[
                            ("order", "Order"),
                            ("sale", "Product sale"),
                            ("bill", "Bill"),
                            ("manual", "Manual entry"),
                            ("initial_balance", "Initial balance"),
                            ("transfer", "Transfer"),
                            ("reversal", "Reversal"),
                        ],
                        default="manual",
                        max_length=20,
                    ),
                ),
                ("reference_id", models.CharField(blank=True, max_length=64, null=True)),
                ("reference_number", models.CharField(blank=True, default="", max_length=64)),
                ("payment_method", models.CharField(blank=True, default="", max_length=50)),
                (
                    "date",
                    models.DateField(
                        default=django.utils.timezone.localdate,
                        help_text="Business date (local calendar date, not an instant)",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="financial_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "source_account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="outgoing_transactions",
                        to="finance.account",
                    ),
                ),
                (
                    "destination_account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="incoming_transactions",
                        to="finance.account",
                    ),
                ),
                (
                    "reversal_of",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversed_by",
                        to="finance.financialtransaction",
                    ),
                ),
            ],
            options={
                "verbose_name": "Financial Transaction",
                "verbose_name_plural": "Financial Transactions",
                "ordering": ["date", "created_at", "id"],
                "indexes": [
                    models.Index(fields=["date"], name="finance_fin_date_8a2c41_idx"),
                    models.Index(fields=["type"], name="finance_fin_type_3b7d90_idx"),
                    models.Index(fields=["created_at"], name="finance_fin_created_5e01b2_idx"),
                    models.Index(fields=["reference_type", "reference_id"], name="finance_fin_referen_9c4a7f_idx"),
                    models.Index(fields=["category"], name="finance_fin_categor_d2e6c3_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("amount__gt", 0),
                                ("destination_account__isnull", False),
                                ("source_account__isnull", True),
                                ("type", "income"),
                            ),
                            models.Q(
                                ("amount__lt", 0),
                                ("destination_account__isnull", True),
                                ("source_account__isnull", False),
                                ("type", "expense"),
                            ),
                            models.Q(
                                models.Q(
                                    ("amount__gt", 0),
                                    ("destination_account__isnull", False),
                                    ("source_account__isnull", False),
                                    ("type", "transfer"),
                                ),
                                models.Q(
                                    ("source_account", models.F("destination_account")),
                                    _negated=True,
                                ),
                            ),
                            _connector="OR",
                        ),
                        name="chk_financial_transaction_kind_shape",
                    )
                ],
            },
        ),
    ]
