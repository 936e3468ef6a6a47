"""Task model."""

from datetime import datetime

from sqlalchemy import JSON, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskflow.extensions import db
from taskflow.utils import utcnow


TASK_PRIORITIES = ("low", "medium", "high")
TASK_STATUSES = ("todo", "in_progress", "completed")


class Task(db.Model):
    """A task owned by exactly one user."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="todo")
    due_date: Mapped[datetime | None] = mapped_column(nullable=True)
    ai_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="tasks")  # noqa: F821

    def apply(self, fields: dict) -> None:
        """Copy validated fields onto the task, leaving absent keys untouched."""
        for key, value in fields.items():
            setattr(self, key, value)

    def __repr__(self) -> str:
        return f"<Task {self.id} user={self.user_id}>"
