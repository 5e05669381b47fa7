"""Remember-me token issuance, validation and revocation."""

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.remember_token import RememberToken
from src.models.user import User

logger = logging.getLogger(__name__)

SECRET_BYTES = 32


@dataclass(frozen=True)
class IssuedToken:
    """A freshly issued token. ``secret`` is only ever handed to the client."""

    token_id: str
    user_id: str
    secret: str
    expires_at: datetime


def hash_secret(secret: str) -> str:
    """Hash raw token secret for storage/comparison."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


class TokenIssuer:
    """Issues opaque remember tokens that are independent of password material."""

    def __init__(self, db: Session, ttl: timedelta | None = None):
        self.db = db
        self.ttl = ttl or timedelta(days=get_settings().remember_token_ttl_days)

    def issue(self, user: User) -> IssuedToken:
        """Create and persist a new token for ``user``."""
        secret = secrets.token_urlsafe(SECRET_BYTES)
        now = datetime.now(UTC)
        record = RememberToken(
            user_id=user.id,
            secret_hash=hash_secret(secret),
            issued_at=now,
            expires_at=now + self.ttl,
        )
        self.db.add(record)
        self.db.commit()

        logger.info(f"Issued remember token {record.id} for user {user.id}")
        return IssuedToken(
            token_id=record.id,
            user_id=user.id,
            secret=secret,
            expires_at=now + self.ttl,
        )

    def validate(self, user_id: str, presented_secret: str) -> User | None:
        """Return the owning user when the secret matches a live token.

        Fails closed: unknown user, unknown secret, revoked or expired tokens
        all give ``None``.
        """
        if not user_id or not presented_secret:
            return None

        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            return None

        presented_hash = hash_secret(presented_secret)
        matched = False
        for record in self._live_tokens(user_id):
            # No early exit so the work done does not depend on which token matched
            if hmac.compare_digest(record.secret_hash, presented_hash):
                matched = True
        return user if matched else None

    def revoke(self, user_id: str, presented_secret: str) -> int:
        """Revoke the single token matching ``presented_secret``."""
        if not user_id or not presented_secret:
            return 0
        deleted = (
            self.db.query(RememberToken)
            .filter(
                RememberToken.user_id == user_id,
                RememberToken.secret_hash == hash_secret(presented_secret),
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info(f"Revoked remember token for user {user_id}")
        return deleted

    def revoke_all(self, user_id: str) -> int:
        """Revoke every outstanding token of ``user_id``.

        Pending changes on the session are committed in the same transaction.
        """
        deleted = (
            self.db.query(RememberToken)
            .filter(RememberToken.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info(f"Revoked {deleted} remember token(s) for user {user_id}")
        return deleted

    def purge_expired(self) -> int:
        """Delete tokens whose expiry has passed."""
        deleted = (
            self.db.query(RememberToken)
            .filter(RememberToken.expires_at <= datetime.now(UTC))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def _live_tokens(self, user_id: str) -> list[RememberToken]:
        return (
            self.db.query(RememberToken)
            .filter(
                RememberToken.user_id == user_id,
                RememberToken.expires_at > datetime.now(UTC),
            )
            .all()
        )
