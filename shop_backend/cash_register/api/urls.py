# cash_register/api/urls.py

from django.urls import path

from cash_register.api.views import (
    CashRegisterSessionListView,
    CloseCashRegisterSessionView,
    CurrentCashRegisterSessionView,
    OpenCashRegisterSessionView,
)

urlpatterns = [
    path("sessions/", CashRegisterSessionListView.as_view(), name="cash-register-sessions"),
    path(
        "sessions/current/",
        CurrentCashRegisterSessionView.as_view(),
        name="cash-register-current",
    ),
    path("sessions/open/", OpenCashRegisterSessionView.as_view(), name="cash-register-open"),
    path(
        "sessions/<int:session_id>/close/",
        CloseCashRegisterSessionView.as_view(),
        name="cash-register-close",
    ),
]
