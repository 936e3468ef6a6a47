"""Authentication endpoints."""

import logging

from flask import Blueprint, current_app, g, jsonify, session
from flask_login import login_user, logout_user

from taskflow.context import get_context
from taskflow.errors import InternalError, ValidationFailed
from taskflow.middleware.auth import login_required
from taskflow.models import User
from taskflow.schemas import (
    LoginSchema,
    RegisterSchema,
    UserSchema,
    VerifyOtpSchema,
    load_request,
)
from taskflow.services.auth import InvalidCredentials
from taskflow.services.mailer import MailDeliveryError
from taskflow.telemetry import get_meter, get_tracer


logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)
meter = get_meter(__name__)

auth_attempts = meter.create_counter(
    name="auth.login.attempts",
    description="Login attempts",
    unit="1",
)

otp_sent = meter.create_counter(
    name="auth.otp.sent",
    description="One-time passcodes issued",
    unit="1",
)

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


def _start_session(user: User) -> None:
    """Bind ``user`` to a freshly generated session id."""
    current_app.session_interface.regenerate(session)
    login_user(user)


@auth_bp.route("/send-otp", methods=["POST"])
def send_otp():
    """Email a one-time passcode for a new account.

    Returns:
        JSON response with a confirmation message.
    """
    with tracer.start_as_current_span("user.send_otp") as span:
        data = load_request(RegisterSchema())

        try:
            get_context().auth.send_otp(data["email"], data["password"], data["name"])
        except MailDeliveryError as e:
            span.set_attribute("auth.status", "mail_failed")
            otp_sent.add(1, {"status": "mail_failed"})
            raise InternalError("Failed to send OTP email") from e

        otp_sent.add(1, {"status": "success"})
        span.set_attribute("auth.status", "otp_sent")
        return jsonify({"message": "OTP sent to email"})


@auth_bp.route("/verify-otp", methods=["POST"])
def verify_otp():
    """Confirm a passcode, create the account and log it in.

    Returns:
        JSON response with user data.
    """
    with tracer.start_as_current_span("user.verify_otp") as span:
        data = load_request(VerifyOtpSchema())

        user = get_context().auth.verify(data["email"], data["otp"], data["password"], data["name"])
        _start_session(user)

        span.set_attribute("user.id", user.id)
        span.set_attribute("auth.status", "verified")
        return UserSchema().jsonify(user), 201


@auth_bp.route("/register", methods=["POST"])
def register():
    """Register a new user.

    With email verification enabled this behaves like ``/send-otp``;
    otherwise the account is created and logged in immediately.
    """
    with tracer.start_as_current_span("user.register") as span:
        data = load_request(RegisterSchema())

        try:
            user = get_context().auth.register(data["email"], data["password"], data["name"])
        except MailDeliveryError as e:
            span.set_attribute("auth.status", "mail_failed")
            raise InternalError("Failed to send OTP email") from e

        if user is None:
            otp_sent.add(1, {"status": "success"})
            span.set_attribute("auth.status", "pending_verification")
            return jsonify({"message": "OTP sent to email"})

        _start_session(user)
        span.set_attribute("user.id", user.id)
        span.set_attribute("auth.status", "registered")
        return UserSchema().jsonify(user), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """Authenticate with identifier and password.

    Returns:
        JSON response with user data.
    """
    with tracer.start_as_current_span("user.login") as span:
        try:
            data = load_request(LoginSchema())
        except ValidationFailed:
            auth_attempts.add(1, {"status": "invalid_request"})
            raise

        try:
            user = get_context().auth.authenticate(data["identifier"], data["password"])
        except InvalidCredentials:
            auth_attempts.add(1, {"status": "invalid_credentials"})
            span.set_attribute("auth.status", "invalid_credentials")
            logger.warning("Login failed for %s", data["identifier"])
            raise

        _start_session(user)

        auth_attempts.add(1, {"status": "success"})
        span.set_attribute("user.id", user.id)
        span.set_attribute("auth.status", "success")
        logger.info("User logged in: %s", user.email, extra={"user_id": user.id})

        return UserSchema().jsonify(user)


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    """End the current session.

    Returns:
        Empty response with 200 status.
    """
    user_id = g.current_user.id
    logout_user()
    session.clear()
    logger.info("User logged out", extra={"user_id": user_id})
    return "", 200


@auth_bp.route("/user", methods=["GET"])
@login_required
def get_user():
    return UserSchema().jsonify(g.current_user)
