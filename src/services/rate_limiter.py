"""Login brute-force protection backed by the application database."""

import logging
import time

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.login_attempt import LoginAttempt
from src.services.credentials import normalize_email
from src.services.exceptions import TooManyAttemptsError

logger = logging.getLogger(__name__)


class LoginRateLimiter:
    """Rate limiter for login attempts by normalized (email, ip) tuple."""

    def __init__(
        self,
        db: Session,
        *,
        max_attempts: int | None = None,
        window_seconds: int | None = None,
        lock_seconds: int | None = None,
    ):
        settings = get_settings()
        self.db = db
        self.max_attempts = max(1, max_attempts or settings.login_max_attempts)
        self.window_seconds = max(1, window_seconds or settings.login_window_seconds)
        self.lock_seconds = max(1, lock_seconds or settings.login_lock_seconds)

    def assert_allowed(self, *, email: str, client_ip: str) -> None:
        """Raise TooManyAttemptsError while the principal is locked."""
        now = int(time.time())
        row = self._get(email, client_ip)
        if row is None:
            return

        if row.locked_until > now:
            raise TooManyAttemptsError(retry_after=row.locked_until - now)

        if row.first_failed_at and (now - row.first_failed_at) > self.window_seconds:
            self.db.delete(row)
            self.db.commit()

    def record_success(self, *, email: str, client_ip: str) -> None:
        """Reset limiter state after successful login."""
        row = self._get(email, client_ip)
        if row is not None:
            self.db.delete(row)
            self.db.commit()

    def record_failure(self, *, email: str, client_ip: str) -> None:
        """Record failed login and apply lock when threshold is reached."""
        try:
            self._record_failure(email, client_ip)
        except IntegrityError:
            # A concurrent failure inserted the row first; count on top of it
            self.db.rollback()
            self._record_failure(email, client_ip)

    def _record_failure(self, email: str, client_ip: str) -> None:
        now = int(time.time())
        row = self._get(email, client_ip)
        if row is None:
            row = LoginAttempt(
                email=normalize_email(email),
                client_ip=_ip_key(client_ip),
                failed_attempts=0,
                first_failed_at=now,
            )
            self.db.add(row)
        elif row.first_failed_at and (now - row.first_failed_at) > self.window_seconds:
            row.failed_attempts = 0
            row.first_failed_at = now

        row.failed_attempts += 1
        row.last_failed_at = now
        if row.failed_attempts >= self.max_attempts:
            row.locked_until = now + self.lock_seconds
            logger.warning(f"Locking logins from {row.client_ip} for {self.lock_seconds}s")
        else:
            row.locked_until = 0
        self.db.commit()

    def _get(self, email: str, client_ip: str) -> LoginAttempt | None:
        return (
            self.db.query(LoginAttempt)
            .filter(
                LoginAttempt.email == normalize_email(email),
                LoginAttempt.client_ip == _ip_key(client_ip),
            )
            .first()
        )


def _ip_key(client_ip: str | None) -> str:
    return (client_ip or "").strip() or "unknown"
