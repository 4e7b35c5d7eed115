"""
GraphQL view with request correlation and structured logging.
"""
import json
import logging
from uuid import uuid4

from ariadne import graphql_sync
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from orders.api.middleware import ErrorHandler
from orders.api.schema import schema
from orders.infra.pii_masker import mask_pii_in_dict
from orders.services import Services, default_services

logger = logging.getLogger(__name__)


class OrdersGraphQLView:
    """GraphQL endpoint dispatching to the order services."""

    def __init__(self, services: Services | None = None):
        self.services = services or default_services()

    def dispatch(self, request, *args, **kwargs):
        """Handle GraphQL request."""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        idempotency_key = request.headers.get("Idempotency-Key")

        log_data = {
            "request_id": request_id,
            "idempotency_key": idempotency_key[:8] + "..." if idempotency_key else None,
            "operation": "graphql",
        }
        logger.info("graphql_request", extra=log_data)

        try:
            response = self._process_graphql_request(request, request_id, idempotency_key)
        except Exception as e:
            response = ErrorHandler.handle_error(e)
            logger.error(
                "graphql_error",
                extra={
                    "request_id": request_id,
                    "error": str(e),
                }
            )

        logger.info(
            "graphql_response",
            extra={
                "request_id": request_id,
                "status": response.status_code,
            }
        )
        response["X-Request-ID"] = request_id
        return response

    def _process_graphql_request(self, request, request_id, idempotency_key):
        """Process GraphQL request."""
        if request.method == "GET":
            return JsonResponse({"message": "GraphQL endpoint. Use POST for queries."})

        try:
            data = json.loads(request.body)
        except json.JSONDecodeError:
            return JsonResponse(
                {"error": {"code": "VALIDATION_ERROR", "message": "Invalid JSON"}},
                status=400
            )

        if not isinstance(data, dict):
            return JsonResponse(
                {"error": {"code": "VALIDATION_ERROR", "message": "Request body must be a JSON object"}},
                status=400
            )

        # Log variables (with PII masking)
        if isinstance(data.get("variables"), dict):
            logger.debug(
                "graphql_variables %s",
                json.dumps(mask_pii_in_dict(data["variables"]), default=str),
                extra={"request_id": request_id, "operation": data.get("operationName")},
            )

        success, result = graphql_sync(
            schema,
            data,
            context_value={
                "request": request,
                "request_id": request_id,
                "idempotency_key": idempotency_key,
                "services": self.services,
            },
            debug=settings.DEBUG,
        )

        status_code = 200 if success else 400
        return JsonResponse(result, status=status_code)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def graphql_view(request):
    """GraphQL endpoint."""
    view = OrdersGraphQLView()
    return view.dispatch(request)
