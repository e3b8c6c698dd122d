# finance/api/views/reports.py

"""
PATH: finance/api/views/reports.py

READ-ONLY FINANCE REPORTS (finance.view)

GET /api/finance/reports/daily/?date=YYYY-MM-DD
GET /api/finance/reports/cash-flow/?start=&end=
GET /api/finance/reports/categories/?start=&end=
GET /api/finance/reports/summary/?start=&end=
GET /api/finance/reports/balances/

start/end default to the first day of the current month and today.
"""

from __future__ import annotations

from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from finance.api.responses import service_error_response
from finance.api.serializers.reports import (
    BalanceOverviewSerializer,
    CashFlowRowSerializer,
    CategorySummaryRowSerializer,
    DailyCashFlowSerializer,
    FinancialSummarySerializer,
)
from finance.services import account_service, cashflow_service
from finance.services.exceptions import FinanceServiceError
from permissions.roles import CAP_FINANCE_VIEW, HasCapability

RANGE_PARAMETERS = [
    OpenApiParameter(name="start", type=str, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="end", type=str, location=OpenApiParameter.QUERY, required=False),
]


def _range_from(request):
    today = timezone.localdate()
    start = request.query_params.get("start") or today.replace(day=1)
    end = request.query_params.get("end") or today
    return start, end


class _ReportView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_FINANCE_VIEW


class DailyCashFlowView(_ReportView):
    @extend_schema(
        tags=["finance-reports"],
        parameters=[
            OpenApiParameter(name="date", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: DailyCashFlowSerializer, 400: dict},
    )
    def get(self, request):
        try:
            data = cashflow_service.daily_cash_flow(request.query_params.get("date"))
        except FinanceServiceError as exc:
            return service_error_response(exc)
        return Response(DailyCashFlowSerializer(data).data, status=status.HTTP_200_OK)


class CashFlowSeriesView(_ReportView):
    @extend_schema(
        tags=["finance-reports"],
        parameters=RANGE_PARAMETERS,
        responses={200: CashFlowRowSerializer(many=True), 400: dict},
    )
    def get(self, request):
        start, end = _range_from(request)
        try:
            rows = cashflow_service.cash_flow_series(start, end)
        except FinanceServiceError as exc:
            return service_error_response(exc)
        return Response(CashFlowRowSerializer(rows, many=True).data, status=status.HTTP_200_OK)


class CategorySummaryView(_ReportView):
    @extend_schema(
        tags=["finance-reports"],
        parameters=RANGE_PARAMETERS,
        responses={200: CategorySummaryRowSerializer(many=True), 400: dict},
    )
    def get(self, request):
        start, end = _range_from(request)
        try:
            rows = cashflow_service.category_summary(start, end)
        except FinanceServiceError as exc:
            return service_error_response(exc)
        return Response(CategorySummaryRowSerializer(rows, many=True).data, status=status.HTTP_200_OK)


class FinancialSummaryView(_ReportView):
    @extend_schema(
        tags=["finance-reports"],
        parameters=RANGE_PARAMETERS,
        responses={200: FinancialSummarySerializer, 400: dict},
    )
    def get(self, request):
        start, end = _range_from(request)
        try:
            data = cashflow_service.financial_summary(start, end)
        except FinanceServiceError as exc:
            return service_error_response(exc)
        return Response(FinancialSummarySerializer(data).data, status=status.HTTP_200_OK)


class BalanceOverviewView(_ReportView):
    @extend_schema(tags=["finance-reports"], responses={200: BalanceOverviewSerializer})
    def get(self, request):
        return Response(
            BalanceOverviewSerializer(account_service.balance_overview()).data,
            status=status.HTTP_200_OK,
        )
