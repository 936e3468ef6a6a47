"""Service modules."""

from taskflow.services.auth import (
    AuthService,
    EmailAlreadyRegistered,
    InvalidCredentials,
    InvalidOrExpiredOtp,
)
from taskflow.services.llm import AssistantClient, AssistantError
from taskflow.services.mailer import MailDeliveryError, Mailer
from taskflow.services.ownership import Access, check_access, require_access
from taskflow.services.tasks import TaskService


__all__ = [
    "AuthService",
    "EmailAlreadyRegistered",
    "InvalidCredentials",
    "InvalidOrExpiredOtp",
    "AssistantClient",
    "AssistantError",
    "Mailer",
    "MailDeliveryError",
    "Access",
    "check_access",
    "require_access",
    "TaskService",
]
