"""Task-related Marshmallow schemas."""

from datetime import date, datetime, timezone

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate

from taskflow.extensions import ma
from taskflow.models import TASK_PRIORITIES, TASK_STATUSES


class DueDate(fields.DateTime):
    """ISO-8601 date or datetime. A bare date is promoted to midnight."""

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str) and len(value.strip()) == 10:
            try:
                day = date.fromisoformat(value.strip())
            except ValueError as e:
                raise ValidationError("Not a valid date or datetime.") from e
            return datetime(day.year, day.month, day.day)
        result = super()._deserialize(value, attr, data, **kwargs)
        # Stored naive; aware inputs are converted to UTC first
        if result.tzinfo is not None:
            result = result.astimezone(timezone.utc).replace(tzinfo=None)
        return result


class TaskSchema(ma.Schema):
    """Schema for task serialization."""

    id = fields.Int(dump_only=True)
    user_id = fields.Int(dump_only=True)
    title = fields.Str()
    description = fields.Str(allow_none=True)
    priority = fields.Str()
    status = fields.Str()
    due_date = fields.DateTime(allow_none=True, format="iso")
    ai_summary = fields.Str(allow_none=True)
    tags = fields.List(fields.Str(), allow_none=True)
    created_at = fields.DateTime(dump_only=True, format="iso")


class TaskCreateSchema(Schema):
    """Schema for task creation validation.

    Server-assigned keys (``id``, ``user_id``, ``created_at``) are dropped
    rather than rejected, so ownership can never be set by the client.
    """

    class Meta:
        unknown = EXCLUDE

    title = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    description = fields.Str(allow_none=True)
    priority = fields.Str(
        load_default="medium",
        validate=validate.OneOf(TASK_PRIORITIES),
    )
    status = fields.Str(
        load_default="todo",
        validate=validate.OneOf(TASK_STATUSES),
    )
    due_date = DueDate(allow_none=True)
    ai_summary = fields.Str(allow_none=True)
    tags = fields.List(fields.Str(validate=validate.Length(max=64)), allow_none=True)


class TaskUpdateSchema(Schema):
    """Schema for partial task updates. No field is defaulted."""

    class Meta:
        unknown = EXCLUDE

    title = fields.Str(validate=validate.Length(min=1, max=255))
    description = fields.Str(allow_none=True)
    priority = fields.Str(validate=validate.OneOf(TASK_PRIORITIES))
    status = fields.Str(validate=validate.OneOf(TASK_STATUSES))
    due_date = DueDate(allow_none=True)
    ai_summary = fields.Str(allow_none=True)
    tags = fields.List(fields.Str(validate=validate.Length(max=64)), allow_none=True)
