"""Method + resource dispatch shared by the domain endpoints.

Each domain is served from a single URL. The `resource` query parameter
selects a handler table and the HTTP method selects the handler. This is
the only place where store and unexpected exceptions are caught: they are
logged with full detail and reduced to a generic 500 for the client.
Request-model validation errors become a 400 naming the first bad field.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Callable

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from coursehub.db import database
from coursehub.utils.validators import is_blank
from coursehub.web.errors import ApiError, MethodNotAllowedError, ValidationError
from coursehub.web.schemas import BLANK_ERROR, FORMAT_ERROR, ErrorEnvelope, SuccessEnvelope

logger = structlog.get_logger(__name__)

BODY_METHODS = ("POST", "PUT", "DELETE")

# Methods routed into dispatch(); anything unsupported per resource gets a 405
ENDPOINT_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]


@dataclass
class RequestContext:
    """Everything a handler needs for one request."""

    conn: sqlite3.Connection
    params: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)

    def lookup(self, *names: str) -> Any:
        """First non-blank value among query params, then body, for the names."""
        for source in (self.params, self.body):
            for name in names:
                value = source.get(name)
                if not is_blank(value):
                    return value
        return None


Handler = Callable[[RequestContext], JSONResponse]
ResourceTable = dict[str, dict[str, Handler]]


def success(
    data: Any,
    status_code: int = 200,
    message: str | None = None,
    count: int | None = None,
) -> JSONResponse:
    """Render a success envelope."""
    envelope = SuccessEnvelope(data=data, message=message, count=count)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(exclude_none=True),
    )


def failure(message: str, status_code: int) -> JSONResponse:
    """Render a failure envelope."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(message=message).model_dump(),
    )


def serialize(schema: type[BaseModel], record: Any) -> dict[str, Any]:
    """Dump a repository record through its response schema."""
    return schema.model_validate(record).model_dump()


def serialize_many(schema: type[BaseModel], records: list[Any]) -> list[dict[str, Any]]:
    return [serialize(schema, record) for record in records]


def parse_id(value: Any, label: str = "id") -> int:
    """Coerce a surrogate id from a query string or body to a positive int.

    Accepts ints and digit strings; booleans and non-integral floats are
    rejected rather than truncated.

    Raises:
        ValidationError: If the value is blank or not a positive integer
    """
    if is_blank(value):
        raise ValidationError(f"{label} is required")
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{label} must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a positive integer")
    if number <= 0:
        raise ValidationError(f"{label} must be a positive integer")
    return number


def describe_validation_error(exc: PydanticValidationError) -> str:
    """One-line message naming the first offending field of a request body."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"]) or "body"

    if error["type"] in ("missing", BLANK_ERROR):
        return f"Missing required field: {field}"
    if error["type"] == FORMAT_ERROR:
        return error["msg"]
    return f"Invalid {field}: {error['msg']}"


async def parse_body(request: Request) -> dict[str, Any]:
    """Decode a JSON object body. An empty body is an empty object.

    Raises:
        ValidationError: If the body is not a JSON object
    """
    raw = await request.body()
    if not raw.strip():
        return {}

    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON in request body")

    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON in request body")

    return payload


async def dispatch(
    request: Request,
    endpoint: str,
    table: ResourceTable,
    default_resource: str | None = None,
) -> JSONResponse:
    """Route one request to exactly one handler.

    Args:
        request: Incoming request
        endpoint: Domain name, used for logging
        table: resource -> method -> handler
        default_resource: Resource assumed when the query omits it

    Returns:
        JSON envelope response
    """
    resource = request.query_params.get("resource") or default_resource
    method = request.method.upper()

    try:
        if not resource:
            raise ValidationError("resource is required")

        handlers = table.get(resource)
        if handlers is None:
            raise ValidationError(
                "Invalid resource. Use one of: " + ", ".join(sorted(table))
            )

        handler = handlers.get(method)
        if handler is None:
            raise MethodNotAllowedError(f"Method {method} not allowed for {resource}")

        body = await parse_body(request) if method in BODY_METHODS else {}

        with database.get_db() as conn:
            context = RequestContext(conn=conn, params=dict(request.query_params), body=body)
            return handler(context)

    except ApiError as exc:
        logger.info(
            "api.request_rejected",
            endpoint=endpoint,
            resource=resource,
            method=method,
            status=exc.status_code,
            reason=exc.message,
        )
        return failure(exc.message, exc.status_code)

    except PydanticValidationError as exc:
        message = describe_validation_error(exc)
        logger.info(
            "api.request_invalid",
            endpoint=endpoint,
            resource=resource,
            method=method,
            reason=message,
        )
        return failure(message, 400)

    except sqlite3.Error:
        logger.error(
            "api.store_failure",
            endpoint=endpoint,
            resource=resource,
            method=method,
            exc_info=True,
        )
        return failure("Database error", 500)

    except Exception:
        logger.error(
            "api.unhandled_error",
            endpoint=endpoint,
            resource=resource,
            method=method,
            exc_info=True,
        )
        return failure("Server error", 500)
