"""Per-request access to app-scoped collaborators."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from typing import Any

from flask import current_app
from sqlalchemy.orm import Session

from taskflow.extensions import db
from taskflow.services.auth import AuthService
from taskflow.services.llm import AssistantClient
from taskflow.services.mailer import Mailer
from taskflow.services.tasks import TaskService
from taskflow.utils import utcnow


EXTENSION_KEY = "taskflow"


@dataclass
class AppServices:
    """Collaborators built once per app and stored in ``app.extensions``.

    Tests replace ``mailer``, ``assistant`` or ``clock`` here.
    """

    mailer: Mailer
    assistant: AssistantClient
    clock: Callable[[], datetime] = field(default=utcnow)


@dataclass
class RequestContext:
    session: Session
    mailer: Mailer
    assistant: AssistantClient
    clock: Callable[[], datetime]
    config: Any

    @cached_property
    def auth(self) -> AuthService:
        return AuthService(
            self.session,
            self.mailer,
            clock=self.clock,
            otp_ttl_minutes=self.config["OTP_TTL_MINUTES"],
            require_verification=self.config["REQUIRE_EMAIL_VERIFICATION"],
        )

    @cached_property
    def tasks(self) -> TaskService:
        return TaskService(self.session)


def get_services(app=None) -> AppServices:
    app = app or current_app
    return app.extensions[EXTENSION_KEY]


def get_context() -> RequestContext:
    services = get_services()
    return RequestContext(
        session=db.session,
        mailer=services.mailer,
        assistant=services.assistant,
        clock=services.clock,
        config=current_app.config,
    )
