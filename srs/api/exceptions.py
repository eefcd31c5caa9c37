from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler
import structlog

from ..exceptions import ReviewValidationError, StorageError

logger = structlog.get_logger()


def review_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, ReviewValidationError):
        return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, StorageError):
        logger.error("storage_error_response", error=str(exc), retryable=exc.retryable)
        return Response(
            {"error": str(exc), "retryable": exc.retryable},
            status=(
                status.HTTP_503_SERVICE_UNAVAILABLE
                if exc.retryable
                else status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
        )

    return None
