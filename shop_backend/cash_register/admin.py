# cash_register/admin.py

from django.contrib import admin

from cash_register.models import CashRegisterSession


@admin.register(CashRegisterSession)
class CashRegisterSessionAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "status",
        "opened_at",
        "opening_amount",
        "closed_at",
        "closing_amount",
        "expected_amount",
        "difference",
        "opened_by",
        "closed_by",
    )
    list_filter = ("status",)
    ordering = ("-opened_at",)
    date_hierarchy = "opened_at"
    readonly_fields = [f.name for f in CashRegisterSession._meta.fields]

    # Sessions move only through open/close in the session service.
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
