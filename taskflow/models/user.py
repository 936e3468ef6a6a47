"""User model."""

from datetime import datetime

from flask_login import UserMixin
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from werkzeug.security import check_password_hash, generate_password_hash

from taskflow.extensions import db
from taskflow.utils import utcnow


class User(UserMixin, db.Model):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="User")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    verified: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    # Relationships
    tasks: Mapped[list["Task"]] = relationship(  # noqa: F821
        "Task", back_populates="owner", lazy="dynamic"
    )

    def set_password(self, password: str) -> None:
        """Hash and set the user's password.

        Args:
            password: Plain text password to hash.
        """
        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash.

        Args:
            password: Plain text password to verify.

        Returns:
            True if password matches, False otherwise.
        """
        return check_password(self.password_hash, password)

    @property
    def is_active(self) -> bool:
        # Flask-Login refuses to log in inactive users
        return self.verified

    def __repr__(self) -> str:
        return f"<User {self.email}>"


def hash_password(password: str) -> str:
    """Derive a salted scrypt hash for storage."""
    return generate_password_hash(password, method="scrypt")


def check_password(stored: str, password: str) -> bool:
    """Recompute the hash with the stored salt and compare in constant time."""
    if not stored:
        return False
    return check_password_hash(stored, password)
