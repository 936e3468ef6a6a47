"""Owner-scoped task operations."""

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskflow.models import Task, User
from taskflow.services.ownership import require_access


logger = logging.getLogger(__name__)

MAX_TASK_ID = 2**63 - 1


class TaskService:
    """CRUD over tasks, every operation scoped to the calling user.

    Args:
        session: Database session; each mutating call commits it.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, user: User) -> Sequence[Task]:
        stmt = (
            select(Task)
            .where(Task.user_id == user.id)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        return self.session.scalars(stmt).all()

    def get(self, user: User, task_id: int) -> Task:
        """Fetch a task, raising NotFound when absent and Forbidden when foreign."""
        # Ids outside the BIGINT range cannot exist and overflow the driver
        task = self.session.get(Task, task_id) if 0 < task_id <= MAX_TASK_ID else None
        return require_access(user, task, "Task")

    def create(self, user: User, fields: dict[str, Any]) -> Task:
        task = Task(**fields)
        # Owner always comes from the session, never from the payload
        task.user_id = user.id
        self.session.add(task)
        self.session.commit()
        logger.info("Task created: %s", task.id, extra={"user_id": user.id})
        return task

    def update(self, user: User, task_id: int, fields: dict[str, Any]) -> Task:
        return self.save_changes(user, self.get(user, task_id), fields)

    def save_changes(self, user: User, task: Task, fields: dict[str, Any]) -> Task:
        """Apply validated fields to a task already returned by ``get``."""
        task.apply(fields)
        self.session.commit()
        logger.info("Task updated: %s", task.id, extra={"user_id": user.id, "fields": sorted(fields)})
        return task

    def delete(self, user: User, task_id: int) -> None:
        task = self.get(user, task_id)
        self.session.delete(task)
        self.session.commit()
        logger.info("Task deleted: %s", task_id, extra={"user_id": user.id})
