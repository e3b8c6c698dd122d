# finance/api/views/transactions.py

"""
PATH: finance/api/views/transactions.py

TRANSACTIONS API

GET    /api/finance/transactions/                   (finance.view)
       ?start=YYYY-MM-DD&end=YYYY-MM-DD&type=&payment_method=&category=&source=
       Newest first. Each row carries running_balance computed by replaying
       the whole filtered set chronologically (before pagination).
POST   /api/finance/transactions/                   (finance.post)  manual entry
GET    /api/finance/transactions/<id>/              (finance.view)
PATCH  /api/finance/transactions/<id>/              (finance.post)  manual only
DELETE /api/finance/transactions/<id>/              (finance.post)  manual only
POST   /api/finance/transactions/<id>/reverse/      (finance.post)
"""

from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from finance.api.filters import TransactionFilter
from finance.api.responses import service_error_response
from finance.api.serializers.transactions import (
    ManualTransactionCreateSerializer,
    ManualTransactionUpdateSerializer,
    ReverseTransactionSerializer,
    TransactionSerializer,
)
from finance.models.transaction import FinancialTransaction
from finance.services import ledger_service
from finance.services.cashflow_service import running_balance_over_transactions
from finance.services.drafts import TransactionDraft
from finance.services.exceptions import FinanceServiceError
from permissions.roles import CAP_FINANCE_POST, CAP_FINANCE_VIEW, HasCapability


def _default_range():
    today = timezone.localdate()
    return today.replace(day=1), today


def _manual_draft(data) -> TransactionDraft:
    common = {
        "amount": data["amount"],
        "description": data["description"],
        "category": data.get("category", ""),
        "payment_method": data.get("payment_method", ""),
        "reference_number": data.get("reference_number", ""),
        "date": data.get("date"),
        "reference_type": FinancialTransaction.REF_MANUAL,
    }
    if data["type"] == FinancialTransaction.TYPE_INCOME:
        return TransactionDraft.income(destination_account_id=data["account_id"], **common)
    return TransactionDraft.expense(source_account_id=data["account_id"], **common)


class TransactionListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capabilities = {"GET": CAP_FINANCE_VIEW, "POST": CAP_FINANCE_POST}
    serializer_class = ManualTransactionCreateSerializer

    @extend_schema(
        tags=["finance"],
        parameters=[
            OpenApiParameter(name="start", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="end", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="type", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="payment_method", type=str, location=OpenApiParameter.QUERY, required=False
            ),
            OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="source",
                type=str,
                location=OpenApiParameter.QUERY,
                required=False,
                description="all | services | products | manual | transfer",
            ),
        ],
        responses=TransactionSerializer(many=True),
    )
    def get(self, request):
        params = request.query_params.copy()
        default_start, default_end = _default_range()
        if not params.get("start"):
            params["start"] = default_start.isoformat()
        if not params.get("end"):
            params["end"] = default_end.isoformat()

        f = TransactionFilter(
            params,
            queryset=FinancialTransaction.objects.select_related(
                "source_account", "destination_account", "created_by"
            ),
        )
        if not f.is_valid():
            return Response(f.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            rows = list(f.qs)
        except FinanceServiceError as exc:
            return service_error_response(exc)

        running = {r.transaction.id: r.running_balance for r in running_balance_over_transactions(rows)}
        context = {"running_balances": running}

        page = self.paginate_queryset(rows)
        if page is not None:
            data = TransactionSerializer(page, many=True, context=context).data
            return self.get_paginated_response(data)

        return Response(
            TransactionSerializer(rows, many=True, context=context).data,
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["finance"],
        request=ManualTransactionCreateSerializer,
        responses={201: TransactionSerializer, 400: dict, 404: dict, 409: dict},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            txn = ledger_service.record(_manual_draft(s.validated_data), actor=request.user)
        except FinanceServiceError as exc:
            return service_error_response(exc)

        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


class TransactionDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capabilities = {
        "GET": CAP_FINANCE_VIEW,
        "PATCH": CAP_FINANCE_POST,
        "DELETE": CAP_FINANCE_POST,
    }
    serializer_class = ManualTransactionUpdateSerializer

    @extend_schema(tags=["finance"], responses={200: TransactionSerializer, 404: dict})
    def get(self, request, transaction_id: int):
        try:
            txn = ledger_service.get_transaction(transaction_id)
        except FinanceServiceError as exc:
            return service_error_response(exc)
        return Response(TransactionSerializer(txn).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["finance"],
        request=ManualTransactionUpdateSerializer,
        responses={200: TransactionSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def patch(self, request, transaction_id: int):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        fields = dict(s.validated_data)

        try:
            current = ledger_service.get_transaction(transaction_id)

            # account_id follows the (possibly new) type onto the right side.
            account_id = fields.pop("account_id", None)
            if account_id is not None or "type" in fields:
                account_id = account_id or current.destination_account_id or current.source_account_id
                if fields.get("type", current.type) == FinancialTransaction.TYPE_INCOME:
                    fields["destination_account_id"] = account_id
                    fields["source_account_id"] = None
                else:
                    fields["source_account_id"] = account_id
                    fields["destination_account_id"] = None

            txn = ledger_service.update_manual(transaction_id, actor=request.user, **fields)
        except FinanceServiceError as exc:
            return service_error_response(exc)

        return Response(TransactionSerializer(txn).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["finance"], responses={204: None, 403: dict, 404: dict, 409: dict})
    def delete(self, request, transaction_id: int):
        try:
            ledger_service.delete_manual(transaction_id, actor=request.user)
        except FinanceServiceError as exc:
            return service_error_response(exc)

        return Response(status=status.HTTP_204_NO_CONTENT)


class TransactionReverseView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_FINANCE_POST
    serializer_class = ReverseTransactionSerializer

    @extend_schema(
        tags=["finance"],
        request=ReverseTransactionSerializer,
        responses={201: TransactionSerializer, 404: dict, 409: dict},
    )
    def post(self, request, transaction_id: int):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            reversal = ledger_service.reverse(
                transaction_id,
                actor=request.user,
                description=s.validated_data.get("description"),
            )
        except FinanceServiceError as exc:
            return service_error_response(exc)

        return Response(TransactionSerializer(reversal).data, status=status.HTTP_201_CREATED)
