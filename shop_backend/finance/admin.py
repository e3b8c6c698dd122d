# finance/admin.py

from django.contrib import admin

from finance.models.account import Account
from finance.models.transaction import FinancialTransaction

# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "bank_ref",
        "balance",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active",)
    search_fields = ("name", "bank_ref")
    ordering = ("name",)
    readonly_fields = ("balance", "created_at", "updated_at")

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("name", "bank_ref"),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active", "balance"),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# FINANCIAL TRANSACTION (READ-ONLY)
# ============================================================


@admin.register(FinancialTransaction)
class FinancialTransactionAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "date",
        "type",
        "amount",
        "description",
        "category",
        "payment_method",
        "reference_type",
        "reference_id",
        "source_account",
        "destination_account",
        "created_by",
    )
    list_filter = ("type", "reference_type", "date")
    search_fields = ("description", "category", "reference_number", "reference_id")
    ordering = ("-date", "-created_at")
    date_hierarchy = "date"
    list_select_related = ("source_account", "destination_account", "created_by")

    # Ledger rows are written only through the finance services.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
