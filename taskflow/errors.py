"""API error taxonomy and Flask error handlers with OpenTelemetry trace context."""

import logging
from collections.abc import Mapping
from typing import Any

from flask import Flask, jsonify
from opentelemetry import trace
from werkzeug.exceptions import HTTPException


logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors rendered as a structured JSON response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, field: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.field = field


class ValidationFailed(ApiError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"


def error_response(message: str, status_code: int, field: str | None = None) -> tuple:
    """Create error response with trace context.

    Args:
        message: Human-readable error message.
        status_code: HTTP status code.
        field: Offending request field, for validation errors.

    Returns:
        Tuple of (response, status_code).
    """
    response: dict[str, Any] = {
        "message": message,
        "status": status_code,
    }
    if field:
        response["field"] = field

    # Add trace ID for debugging
    span = trace.get_current_span()
    span_context = span.get_span_context()
    if span_context.is_valid:
        response["trace_id"] = format(span_context.trace_id, "032x")

    return jsonify(response), status_code


def first_validation_error(messages: Any, path: tuple = ()) -> tuple[str | None, str]:
    """Pick the first error out of a marshmallow ``messages`` structure.

    Nested errors (lists, indexed dicts) are followed depth-first and their
    keys joined with dots, so ``{"tags": {0: ["Not a valid string."]}}``
    becomes ``("tags.0", "Not a valid string.")``.
    """
    if isinstance(messages, Mapping):
        for key, value in messages.items():
            key_path = path if key == "_schema" else (*path, str(key))
            return first_validation_error(value, key_path)
    elif isinstance(messages, (list, tuple)) and messages:
        return first_validation_error(messages[0], path)
    field = ".".join(path) or None
    return field, str(messages) if messages else "Invalid request"


def register_error_handlers(app: Flask) -> None:
    """Register error handlers on Flask app.

    Args:
        app: Flask application instance.
    """

    @app.errorhandler(ApiError)
    def api_error(error: ApiError):
        return error_response(error.message, error.status_code, error.field)

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        return error_response(_HTTP_MESSAGES.get(error.code, error.name), error.code or 500)

    @app.errorhandler(Exception)
    def unhandled_error(error: Exception):
        logger.exception("Unhandled error: %s", type(error).__name__)
        span = trace.get_current_span()
        if span.is_recording():
            span.record_exception(error)
            span.set_status(trace.StatusCode.ERROR, type(error).__name__)
        return error_response(InternalError.default_message, 500)


_HTTP_MESSAGES = {
    400: "Bad request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    405: "Method not allowed",
    409: "Conflict",
    500: "Internal server error",
}
