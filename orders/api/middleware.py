"""
Error handling for API responses.
"""
import logging

from django.http import JsonResponse

from orders.domain.errors import OrderError

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Convert engine errors into status-coded response payloads."""

    ERROR_CODES = {
        "VALIDATION_ERROR": 400,
        "INVALID_CURSOR": 400,
        "INVALID_TYPE": 400,
        "INVALID_OWNER_ID": 400,
        "INVALID_CONTENT_TYPE": 400,
        "INVALID_FILE_SIZE": 400,
        "MISSING_OWNER_ID": 400,
        "MISSING_FILE_NAME": 400,
        "MISSING_CONTENT_TYPE": 400,
        "FILE_TOO_LARGE": 400,
        "INVALID_TRANSITION": 400,
        "INVALID_STATUS": 400,
        "NOT_FOUND": 404,
        "DUPLICATE_REQUEST": 409,
        "CONFLICT": 409,
        "REPOSITORY_ERROR": 500,
        "PRESIGN_ERROR": 500,
        "PROCESSING_ERROR": 500,
        "INTERNAL_ERROR": 500,
    }

    @classmethod
    def status_for(cls, code: str) -> int:
        return cls.ERROR_CODES.get(code, 500)

    @classmethod
    def error_result(cls, error: Exception) -> dict:
        """Build a ``{statusCode, body}`` result for ``error``."""
        if isinstance(error, OrderError):
            body = {"message": error.message, "code": error.code}
            body.update(error.details())
            return {"statusCode": cls.status_for(error.code), "body": body}

        # Log unexpected errors
        logger.error(
            "unexpected_error",
            extra={
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=error,
        )
        return {
            "statusCode": 500,
            "body": {
                "message": "Internal server error",
                "code": "INTERNAL_ERROR",
            },
        }

    @classmethod
    def handle_error(cls, error: Exception) -> JsonResponse:
        """Handle error and return JSON response."""
        result = cls.error_result(error)
        return JsonResponse({"error": result["body"]}, status=result["statusCode"])
