# finance/api/views/transfers.py

"""
POST /api/finance/transfers/    (finance.transfer)

One transfer-kind transaction; both balances move in the same DB
transaction or not at all.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from finance.api.responses import service_error_response
from finance.api.serializers.transactions import TransactionSerializer
from finance.api.serializers.transfers import TransferCreateSerializer
from finance.services import transfer_service
from finance.services.exceptions import FinanceServiceError
from permissions.roles import CAP_FINANCE_TRANSFER, HasCapability


class TransferCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_FINANCE_TRANSFER
    serializer_class = TransferCreateSerializer

    @extend_schema(
        tags=["finance"],
        request=TransferCreateSerializer,
        responses={201: TransactionSerializer, 400: dict, 404: dict, 409: dict},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            txn = transfer_service.transfer(
                source_id=data["source_account_id"],
                destination_id=data["destination_account_id"],
                amount=data["amount"],
                description=data.get("description", ""),
                payment_method=data.get("payment_method", ""),
                date=data.get("date"),
                actor=request.user,
            )
        except FinanceServiceError as exc:
            return service_error_response(exc)

        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)
