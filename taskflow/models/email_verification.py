"""Pending email verification model."""

import secrets
from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.extensions import db
from taskflow.utils import utcnow


class EmailVerification(db.Model):
    """One-time passcode awaiting confirmation, at most one per email."""

    __tablename__ = "email_verifications"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    otp: Mapped[str] = mapped_column(String(6), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def matches(self, code: str) -> bool:
        return secrets.compare_digest(self.otp.encode(), code.encode())

    def __repr__(self) -> str:
        return f"<EmailVerification {self.email} expires={self.expires_at:%Y-%m-%dT%H:%M:%S}>"
