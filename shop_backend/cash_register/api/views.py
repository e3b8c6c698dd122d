# cash_register/api/views.py

"""
PATH: cash_register/api/views.py

CASH REGISTER API

GET  /api/cash-register/sessions/               (cash.operate)  history
GET  /api/cash-register/sessions/current/       (cash.operate)  open session + live expected
POST /api/cash-register/sessions/open/          (cash.operate)
POST /api/cash-register/sessions/<id>/close/    (cash.close)
"""

from decimal import Decimal

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from cash_register.api.serializers import (
    CashRegisterSessionSerializer,
    CloseSessionSerializer,
    CurrentSessionSerializer,
    OpenSessionSerializer,
)
from cash_register.services import session_service
from finance.api.responses import service_error_response
from finance.services.exceptions import FinanceServiceError
from permissions.roles import CAP_CASH_CLOSE, CAP_CASH_OPERATE, HasCapability


class CashRegisterSessionListView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_CASH_OPERATE
    serializer_class = CashRegisterSessionSerializer

    @extend_schema(
        tags=["cash-register"],
        parameters=[
            OpenApiParameter(name="limit", type=int, location=OpenApiParameter.QUERY, required=False),
        ],
        responses=CashRegisterSessionSerializer(many=True),
    )
    def get(self, request):
        try:
            limit = int(request.query_params.get("limit") or 20)
        except ValueError:
            return Response({"detail": "limit must be an integer"}, status=status.HTTP_400_BAD_REQUEST)

        qs = session_service.history(limit)
        return Response(CashRegisterSessionSerializer(qs, many=True).data, status=status.HTTP_200_OK)


class CurrentCashRegisterSessionView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_CASH_OPERATE
    serializer_class = CurrentSessionSerializer

    @extend_schema(tags=["cash-register"], responses=CurrentSessionSerializer)
    def get(self, request):
        session = session_service.current()
        payload = {
            "is_open": session is not None,
            "session": session,
            "expected_amount": session_service.expected_amount(session) if session else Decimal("0.00"),
        }
        return Response(CurrentSessionSerializer(payload).data, status=status.HTTP_200_OK)


class OpenCashRegisterSessionView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_CASH_OPERATE
    serializer_class = OpenSessionSerializer

    @extend_schema(
        tags=["cash-register"],
        request=OpenSessionSerializer,
        responses={201: CashRegisterSessionSerializer, 400: dict, 409: dict},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            session = session_service.open_session(
                opening_amount=data["opening_amount"],
                actor=request.user,
                notes=data.get("notes", ""),
            )
        except FinanceServiceError as exc:
            return service_error_response(exc)

        return Response(CashRegisterSessionSerializer(session).data, status=status.HTTP_201_CREATED)


class CloseCashRegisterSessionView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_CASH_CLOSE
    serializer_class = CloseSessionSerializer

    @extend_schema(
        tags=["cash-register"],
        request=CloseSessionSerializer,
        responses={200: CashRegisterSessionSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, session_id: int):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            session = session_service.close_session(
                session_id,
                counted_amount=data["counted_amount"],
                actor=request.user,
                notes=data.get("notes"),
            )
        except FinanceServiceError as exc:
            return service_error_response(exc)

        return Response(CashRegisterSessionSerializer(session).data, status=status.HTTP_200_OK)
