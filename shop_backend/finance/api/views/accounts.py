# finance/api/views/accounts.py

"""
PATH: finance/api/views/accounts.py

ACCOUNTS API

GET   /api/finance/accounts/                    (finance.view)
      ?include_inactive=true
POST  /api/finance/accounts/                    (finance.accounts)
GET   /api/finance/accounts/<id>/               (finance.view)
PATCH /api/finance/accounts/<id>/               (finance.accounts)
POST  /api/finance/accounts/<id>/deactivate/    (finance.accounts)

Balances are never writable here; an opening balance is posted to the
ledger by the account service.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from finance.api.responses import service_error_response
from finance.api.serializers.accounts import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
)
from finance.services import account_service
from finance.services.exceptions import FinanceServiceError
from permissions.roles import CAP_FINANCE_ACCOUNTS, CAP_FINANCE_VIEW, HasCapability

_TRUTHY = {"1", "true", "yes", "on"}


class AccountListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capabilities = {"GET": CAP_FINANCE_VIEW, "POST": CAP_FINANCE_ACCOUNTS}
    serializer_class = AccountCreateSerializer

    @extend_schema(
        tags=["finance"],
        parameters=[
            OpenApiParameter(
                name="include_inactive",
                type=bool,
                location=OpenApiParameter.QUERY,
                required=False,
            ),
        ],
        responses=AccountSerializer(many=True),
    )
    def get(self, request):
        include_inactive = (request.query_params.get("include_inactive") or "").lower() in _TRUTHY
        qs = account_service.list_accounts(include_inactive=include_inactive)
        return Response(AccountSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["finance"],
        request=AccountCreateSerializer,
        responses={201: AccountSerializer, 400: dict, 403: dict, 409: dict},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            account = account_service.create_account(
                name=data["name"],
                bank_ref=data.get("bank_ref", ""),
                opening_balance=data.get("opening_balance"),
                actor=request.user,
            )
        except FinanceServiceError as exc:
            return service_error_response(exc)

        return Response(AccountSerializer(account).data, status=status.HTTP_201_CREATED)


class AccountDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capabilities = {"GET": CAP_FINANCE_VIEW, "PATCH": CAP_FINANCE_ACCOUNTS}
    serializer_class = AccountUpdateSerializer

    @extend_schema(tags=["finance"], responses={200: AccountSerializer, 404: dict})
    def get(self, request, account_id: int):
        try:
            account = account_service.get_account(account_id)
        except FinanceServiceError as exc:
            return service_error_response(exc)
        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["finance"],
        request=AccountUpdateSerializer,
        responses={200: AccountSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def patch(self, request, account_id: int):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            account = account_service.update_account(
                account_id,
                name=data.get("name"),
                bank_ref=data.get("bank_ref"),
            )
        except FinanceServiceError as exc:
            return service_error_response(exc)

        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)


class AccountDeactivateView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_FINANCE_ACCOUNTS

    @extend_schema(
        tags=["finance"],
        request=None,
        responses={200: AccountSerializer, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, account_id: int):
        try:
            account = account_service.deactivate_account(account_id)
        except FinanceServiceError as exc:
            return service_error_response(exc)

        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)
