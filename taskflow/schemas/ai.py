"""Request schemas for the model-backed helper endpoints."""

from marshmallow import EXCLUDE, Schema, fields, validate


class SummarizeRequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    description = fields.Str(required=True, validate=validate.Length(min=1, max=10000))


class PrioritizeRequestSchema(SummarizeRequestSchema):
    title = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    # The model can still judge a task from its title alone
    description = fields.Str(load_default="", validate=validate.Length(max=10000))
