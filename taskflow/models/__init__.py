"""Database models."""

from taskflow.models.email_verification import EmailVerification
from taskflow.models.task import TASK_PRIORITIES, TASK_STATUSES, Task
from taskflow.models.user import User


__all__ = ["User", "Task", "EmailVerification", "TASK_PRIORITIES", "TASK_STATUSES"]
