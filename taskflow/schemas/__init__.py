"""Marshmallow schemas for serialization and validation."""

from typing import Any

from flask import request
from marshmallow import Schema, ValidationError

from taskflow.errors import ValidationFailed, first_validation_error
from taskflow.schemas.ai import PrioritizeRequestSchema, SummarizeRequestSchema
from taskflow.schemas.task import TaskCreateSchema, TaskSchema, TaskUpdateSchema
from taskflow.schemas.user import (
    LoginSchema,
    RegisterSchema,
    UserSchema,
    VerifyOtpSchema,
)


def request_body() -> Any:
    """Return the parsed JSON body, or an empty object when none was sent."""
    body = request.get_json(silent=True)
    if body is None and request.get_data():
        raise ValidationFailed("Request body must be valid JSON")
    return body or {}


def load_request(schema: Schema) -> dict[str, Any]:
    """Validate the JSON body, raising ValidationFailed with the first error."""
    try:
        return schema.load(request_body())
    except ValidationError as err:
        field, message = first_validation_error(err.messages)
        raise ValidationFailed(message, field=field) from None


__all__ = [
    "load_request",
    "UserSchema",
    "RegisterSchema",
    "VerifyOtpSchema",
    "LoginSchema",
    "TaskSchema",
    "TaskCreateSchema",
    "TaskUpdateSchema",
    "PrioritizeRequestSchema",
    "SummarizeRequestSchema",
]
