# finance/api/responses.py

from rest_framework.response import Response

from finance.services.exceptions import FinanceServiceError


def service_error_response(exc: FinanceServiceError) -> Response:
    """Domain error -> {"detail": ...} with the status the error class carries."""
    return Response(
        {"detail": str(exc), "code": type(exc).__name__},
        status=exc.status_code,
    )
