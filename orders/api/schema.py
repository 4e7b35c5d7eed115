"""
GraphQL schema definition using Ariadne.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from ariadne import (
    MutationType,
    QueryType,
    ScalarType,
    load_schema_from_path,
    make_executable_schema,
)
from graphql.utilities import value_from_ast_untyped

from orders.api.formatters import (
    format_order,
    format_order_page,
    format_presigned_upload,
    format_processing_result,
)
from orders.api.middleware import ErrorHandler
from orders.domain.errors import ProcessingFailure

logger = logging.getLogger(__name__)

# Load schema from .graphql files
SCHEMAS_DIR = Path(__file__).parent / "schemas"
type_defs = "\n".join([
    load_schema_from_path(SCHEMAS_DIR / "common"),
    load_schema_from_path(SCHEMAS_DIR / "query"),
    load_schema_from_path(SCHEMAS_DIR / "mutation"),
])

query = QueryType()
mutation = MutationType()


def respond(operation: Callable[[], dict], status_code: int = 200) -> dict:
    """Run ``operation`` and wrap its body, converting any failure to an error result."""
    try:
        return {"statusCode": status_code, "body": operation()}
    except Exception as e:
        return ErrorHandler.error_result(e)


def _services(info):
    return info.context["services"]


@mutation.field("createOrder")
def resolve_create_order(_, info, input, idempotencyKey=None):
    """Resolve create order mutation."""
    key = idempotencyKey or info.context.get("idempotency_key")
    orders = _services(info).orders
    return respond(lambda: format_order(orders.create_order(input, idempotency_key=key)), 201)


@query.field("getOrder")
def resolve_get_order(_, info, orderId):
    """Resolve order query."""
    orders = _services(info).orders
    return respond(lambda: format_order(orders.get_order(orderId)))


@mutation.field("updateOrderStatus")
def resolve_update_order_status(_, info, orderId, status, errorMessage=None):
    orders = _services(info).orders
    return respond(
        lambda: format_order(orders.update_status(orderId, status, errorMessage))
    )


@query.field("listOrders")
def resolve_list_orders(_, info, customerEmail=None, status=None, type=None, limit=None, nextToken=None):
    """Resolve paginated order listing."""
    orders = _services(info).orders
    return respond(
        lambda: format_order_page(
            orders.list_orders(
                customer_email=customerEmail,
                status=status,
                order_type=type,
                limit=limit,
                cursor=nextToken,
            )
        )
    )


@mutation.field("processOrder")
def resolve_process_order(_, info, orderId):
    """Resolve process order mutation."""
    processor = _services(info).processor
    try:
        result = processor.process(orderId)
    except Exception as e:
        return ErrorHandler.error_result(e)

    body = format_processing_result(result)
    if result.failed:
        body["code"] = ProcessingFailure.code
        return {"statusCode": ErrorHandler.status_for(ProcessingFailure.code), "body": body}
    return {"statusCode": 200, "body": body}


@mutation.field("presignUpload")
def resolve_presign_upload(_, info, input: dict):
    """Resolve presigned upload mutation."""
    uploads = _services(info).uploads
    file_size = input.get("fileSize")
    if isinstance(file_size, float) and file_size.is_integer():
        file_size = int(file_size)
    return respond(
        lambda: format_presigned_upload(
            uploads.presign(
                kind=input["kind"],
                owner_id=input["ownerId"],
                file_name=input["fileName"],
                content_type=input["contentType"],
                file_size=file_size,
            )
        )
    )


# Define custom scalars
json_scalar = ScalarType("JSON")


@json_scalar.serializer
def serialize_json(value):
    """JSON values are already plain Python structures."""
    return value


@json_scalar.value_parser
def parse_json_value(value):
    return value


@json_scalar.literal_parser
def parse_json_literal(ast, variables=None):
    """Parse JSON from an inline GraphQL literal."""
    return value_from_ast_untyped(ast, variables)


# Create executable schema
schema = make_executable_schema(
    type_defs,
    query,
    mutation,
    json_scalar,
)
