"""User-related Marshmallow schemas."""

from marshmallow import EXCLUDE, Schema, fields, post_load, pre_load, validate

from taskflow.extensions import ma


class UserSchema(ma.Schema):
    """Schema for user serialization. The password hash is never dumped."""

    id = fields.Int(dump_only=True)
    email = fields.Email(required=True)
    name = fields.Str(required=True)
    verified = fields.Bool(dump_only=True)
    created_at = fields.DateTime(dump_only=True, format="iso")


class _EmailInput(Schema):
    class Meta:
        unknown = EXCLUDE

    @pre_load
    def normalize_email(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("email"), str):
            data = {**data, "email": data["email"].strip().lower()}
        return data


class RegisterSchema(_EmailInput):
    """Schema for registration and OTP request validation."""

    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=6))
    name = fields.Str(required=True, validate=validate.Length(min=1, max=255))


class VerifyOtpSchema(RegisterSchema):
    """Schema for OTP verification validation."""

    otp = fields.Str(
        required=True,
        validate=validate.Regexp(r"^\d{6}$", error="OTP must be a 6-digit code."),
    )


class LoginSchema(Schema):
    """Schema for user login validation.

    The identifier may be sent as ``identifier``, ``email`` or ``username``.
    """

    class Meta:
        unknown = EXCLUDE

    identifier = fields.Str(required=True, validate=validate.Length(min=1))
    password = fields.Str(required=True, load_only=True)

    @pre_load
    def accept_aliases(self, data, **kwargs):
        if isinstance(data, dict) and "identifier" not in data:
            for alias in ("email", "username"):
                if alias in data:
                    data = {**data, "identifier": data[alias]}
                    break
        return data

    @post_load
    def normalize_identifier(self, data, **kwargs):
        data["identifier"] = data["identifier"].strip().lower()
        return data
