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
            name="CashRegisterSession",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("opened_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("opening_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "closing_amount",
                    models.DecimalField(
                        blank=True, decimal_places=2, help_text="Counted cash at close", max_digits=14, null=True
                    ),
                ),
                (
                    "expected_amount",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Opening amount plus cash movements during the shift",
                        max_digits=14,
                        null=True,
                    ),
                ),
                (
                    "difference",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="closing_amount - expected_amount (negative = drawer short)",
                        max_digits=14,
                        null=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("open", "Open"), ("closed", "Closed")], default="open", max_length=10
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "opened_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="opened_cash_sessions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "closed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="closed_cash_sessions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Cash Register Session",
                "verbose_name_plural": "Cash Register Sessions",
                "ordering": ["-opened_at", "-id"],
                "indexes": [models.Index(fields=["opened_at"], name="cash_regist_opened__7f3a1c_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "open")),
                        fields=("status",),
                        name="uniq_cash_register_single_open_session",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("opening_amount__gte", 0)),
                        name="chk_cash_register_opening_amount_non_negative",
                    ),
                ],
            },
        ),
    ]
