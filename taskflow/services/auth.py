"""Registration, email verification and password authentication."""

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskflow.errors import Unauthorized, ValidationFailed
from taskflow.models import EmailVerification, User
from taskflow.services.mailer import Mailer
from taskflow.utils import utcnow


logger = logging.getLogger(__name__)


class EmailAlreadyRegistered(ValidationFailed):
    default_message = "Email already exists"

    def __init__(self) -> None:
        super().__init__(field="email")


class InvalidOrExpiredOtp(ValidationFailed):
    default_message = "Invalid or expired OTP"

    def __init__(self) -> None:
        super().__init__(field="otp")


class InvalidCredentials(Unauthorized):
    default_message = "Invalid credentials"


def generate_otp() -> str:
    """Uniformly random 6-digit code, never starting with zero."""
    return str(secrets.randbelow(900000) + 100000)


class AuthService:
    """Account lifecycle against one database session.

    Args:
        session: Database session; successful operations commit it.
        mailer: Delivers one-time passcodes.
        clock: Returns the current naive UTC time.
        otp_ttl_minutes: Lifetime of an issued passcode.
        require_verification: When false, ``register`` creates verified
            users immediately instead of mailing a passcode.
    """

    def __init__(
        self,
        session: Session,
        mailer: Mailer,
        clock: Callable[[], datetime] = utcnow,
        otp_ttl_minutes: int = 10,
        require_verification: bool = True,
    ) -> None:
        self.session = session
        self.mailer = mailer
        self.clock = clock
        self.otp_ttl = timedelta(minutes=otp_ttl_minutes)
        self.require_verification = require_verification

    def find_user(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email))

    def register(self, email: str, password: str, name: str) -> User | None:
        """Start or complete registration.

        Returns:
            The new user when verification is disabled, otherwise None after
            a passcode has been sent.
        """
        if self.require_verification:
            self.send_otp(email, password, name)
            return None

        if self.find_user(email) is not None:
            raise EmailAlreadyRegistered()
        return self._create_user(email, password, name)

    def send_otp(self, email: str, password: str, name: str) -> None:
        """Issue a fresh passcode for ``email``, replacing any earlier one.

        ``password`` and ``name`` are validated by the caller but not stored;
        they are supplied again at verification.
        """
        if self.find_user(email) is not None:
            raise EmailAlreadyRegistered()

        otp = generate_otp()
        self._upsert_verification(email, otp, self.clock() + self.otp_ttl)
        self.session.commit()

        self.mailer.send_otp(email, otp, int(self.otp_ttl.total_seconds() // 60))
        logger.info("OTP issued for %s", email)

    def verify(self, email: str, otp: str, password: str, name: str) -> User:
        """Consume a passcode and create the verified user.

        Raises:
            InvalidOrExpiredOtp: No pending code, a different code, or an
                expired one. Nothing is changed in that case.
            EmailAlreadyRegistered: The account was created concurrently.
        """
        record = self.session.scalar(
            select(EmailVerification).where(EmailVerification.email == email)
        )
        if record is None or not record.matches(otp) or record.is_expired(self.clock()):
            logger.warning("OTP verification failed for %s", email)
            raise InvalidOrExpiredOtp()

        self.session.delete(record)
        return self._create_user(email, password, name)

    def authenticate(self, identifier: str, password: str) -> User:
        """Resolve credentials to a user.

        Unknown accounts, wrong passwords and unverified accounts all raise
        the same InvalidCredentials.
        """
        user = self.find_user(identifier)
        if user is None or not user.check_password(password) or not user.verified:
            raise InvalidCredentials()
        return user

    def _create_user(self, email: str, password: str, name: str) -> User:
        user = User(email=email, name=name, verified=True)
        user.set_password(password)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise EmailAlreadyRegistered() from None

        logger.info("User registered: %s", email, extra={"user_id": user.id})
        return user

    def _upsert_verification(self, email: str, otp: str, expires_at: datetime) -> None:
        values = {"email": email, "otp": otp, "expires_at": expires_at, "created_at": self.clock()}
        dialect = self.session.get_bind(mapper=EmailVerification).dialect.name

        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            self.session.execute(delete(EmailVerification).where(EmailVerification.email == email))
            self.session.add(EmailVerification(**values))
            return

        stmt = insert(EmailVerification).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[EmailVerification.email],
            set_={
                "otp": stmt.excluded.otp,
                "expires_at": stmt.excluded.expires_at,
                "created_at": stmt.excluded.created_at,
            },
        )
        self.session.execute(stmt)
