"""Session manager: sign-in, sign-out and current-user resolution.

Client-held state is a pair of cookies, each carrying a JWT signed with the
application secret:

- the session cookie binds the caller to a user for the current browser
  session (``sub``, ``sid``, ``ver``, ``exp``); ``sid`` names a
  ``user_sessions`` row, and the cookie stops resolving once that row is gone;
- the remember cookie carries the raw remember-token secret (``sub``,
  ``sec``, ``exp``) and survives browser restarts.

Neither cookie is trusted before its signature and expiry are checked.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from sqlalchemy.orm import Session
from starlette.responses import Response

from src.config import Settings, get_settings
from src.models.user import User
from src.models.user_session import UserSession
from src.services.credentials import CredentialStore
from src.services.exceptions import InvalidCredentialsError
from src.services.rate_limiter import LoginRateLimiter
from src.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)

SESSION_TOKEN_TYPE = "session"  # noqa: S105
REMEMBER_TOKEN_TYPE = "remember"  # noqa: S105

# Used to spend the same hashing work on unknown emails as on known ones
DUMMY_SALT = "00" * 16


@dataclass(frozen=True)
class AuthSession:
    """An established session for the current caller."""

    user_id: str
    created_at: datetime
    remembered: bool = False


@dataclass
class CookieWrite:
    value: str
    max_age: int | None = None


@dataclass
class AuthContext:
    """Per-request authentication state.

    Created once per inbound request and never shared: it holds the cookies
    the caller presented, the cookie changes to send back, and the memoized
    current-user lookup for this request only.
    """

    cookies: Mapping[str, str] = field(default_factory=dict)
    client_ip: str = ""
    pending_writes: dict[str, CookieWrite] = field(default_factory=dict)
    pending_deletes: set[str] = field(default_factory=set)
    resolved: bool = False
    user: User | None = None
    session_id: str | None = None

    def set_cookie(self, name: str, value: str, max_age: int | None = None) -> None:
        self.pending_deletes.discard(name)
        self.pending_writes[name] = CookieWrite(value=value, max_age=max_age)

    def delete_cookie(self, name: str) -> None:
        self.pending_writes.pop(name, None)
        self.pending_deletes.add(name)

    def remember(self, user: User | None) -> None:
        self.resolved = True
        self.user = user

    def apply(self, response: Response, settings: Settings | None = None) -> None:
        """Copy pending cookie changes onto an outgoing response."""
        settings = settings or get_settings()
        for name, write in self.pending_writes.items():
            response.set_cookie(
                name,
                write.value,
                max_age=write.max_age,
                httponly=True,
                secure=settings.cookie_secure,
                samesite="lax",
            )
        for name in self.pending_deletes:
            response.delete_cookie(
                name,
                httponly=True,
                secure=settings.cookie_secure,
                samesite="lax",
            )


class SessionManager:
    """Anonymous -> Authenticated -> Anonymous transitions for one request context."""

    def __init__(
        self,
        db: Session,
        context: AuthContext,
        *,
        credentials: CredentialStore | None = None,
        tokens: TokenIssuer | None = None,
        rate_limiter: LoginRateLimiter | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.context = context
        self.settings = settings or get_settings()
        self.credentials = credentials or CredentialStore(db)
        self.tokens = tokens or TokenIssuer(
            db, ttl=timedelta(days=self.settings.remember_token_ttl_days)
        )
        self.rate_limiter = rate_limiter

    def login(self, email: str, password: str, remember: bool = False) -> AuthSession:
        """Authenticate credentials and sign the caller in.

        Unknown email and wrong password both raise the same
        InvalidCredentialsError.
        """
        client_ip = self.context.client_ip
        if self.rate_limiter is not None:
            self.rate_limiter.assert_allowed(email=email, client_ip=client_ip)

        user = self.credentials.find_by_email(email)
        if user is None:
            self.credentials.hasher.hash(password or "-", DUMMY_SALT)
            authenticated = False
        else:
            authenticated = self.credentials.verify_password(user, password)

        if not authenticated:
            if self.rate_limiter is not None:
                self.rate_limiter.record_failure(email=email, client_ip=client_ip)
            logger.warning(f"Failed login attempt from {client_ip or 'unknown'}")
            raise InvalidCredentialsError()

        if self.rate_limiter is not None:
            self.rate_limiter.record_success(email=email, client_ip=client_ip)
        return self.sign_in(user, remember=remember)

    def sign_in(self, user: User, remember: bool = False) -> AuthSession:
        """Bind ``user`` to this context, optionally issuing a remember token.

        Whatever session and remember token the caller presented before are
        ended first, so the browser carries exactly one identity afterwards.
        """
        self._end_presented_credentials()

        now = datetime.now(UTC)
        self._open_session(user, now)

        if remember:
            issued = self.tokens.issue(user)
            claims = {
                "sub": user.id,
                "sec": issued.secret,
                "typ": REMEMBER_TOKEN_TYPE,
                "exp": issued.expires_at,
            }
            self.context.set_cookie(
                self.settings.remember_cookie_name,
                self._encode(claims),
                max_age=int((issued.expires_at - now).total_seconds()),
            )
        else:
            self.context.delete_cookie(self.settings.remember_cookie_name)

        self.context.remember(user)
        logger.info(f"User {user.id} signed in (remember={remember})")
        return AuthSession(user_id=user.id, created_at=now, remembered=remember)

    def sign_out(self) -> None:
        """End this context's session and revoke the presented remember token."""
        signed_out = self.context.user.id if self.context.user is not None else None
        self._end_presented_credentials()

        self.context.delete_cookie(self.settings.session_cookie_name)
        self.context.delete_cookie(self.settings.remember_cookie_name)
        self.context.remember(None)
        if signed_out:
            logger.info(f"User {signed_out} signed out")

    def current_user(self) -> User | None:
        """Resolve the caller's identity, at most once per context."""
        if self.context.resolved:
            return self.context.user

        user = self._user_from_session() or self._user_from_remember_token()
        self.context.remember(user)
        return user

    def _user_from_session(self) -> User | None:
        name = self.settings.session_cookie_name
        raw = self.context.cookies.get(name)
        if not raw:
            return None

        claims = self._decode(raw, SESSION_TOKEN_TYPE)
        user = None
        if claims is not None:
            session_id = str(claims.get("sid") or "")
            user_id = str(claims.get("sub") or "")
            if self._session_is_live(session_id, user_id):
                user = self.credentials.find_by_id(user_id)
            if user is not None and claims.get("ver") != user.session_version:
                user = None
            if user is not None:
                self.context.session_id = session_id
        if user is None:
            self.context.delete_cookie(name)
        return user

    def _user_from_remember_token(self) -> User | None:
        name = self.settings.remember_cookie_name
        raw = self.context.cookies.get(name)
        if not raw:
            return None

        claims = self._decode(raw, REMEMBER_TOKEN_TYPE)
        user = None
        if claims is not None:
            user = self.tokens.validate(str(claims.get("sub") or ""), str(claims.get("sec") or ""))
        if user is None:
            self.context.delete_cookie(name)
            return None

        # Sliding renewal: the browser session picks up again from here
        self._open_session(user, datetime.now(UTC))
        return user

    def _end_presented_credentials(self) -> None:
        """Close the session and revoke the remember token this caller holds."""
        session_ids = {self.context.session_id}
        session_claims = self._decode(
            self.context.cookies.get(self.settings.session_cookie_name), SESSION_TOKEN_TYPE
        )
        if session_claims is not None:
            session_ids.add(str(session_claims.get("sid") or ""))
        session_ids.discard(None)
        session_ids.discard("")
        if session_ids:
            self.db.query(UserSession).filter(UserSession.id.in_(session_ids)).delete(
                synchronize_session=False
            )
            self.db.commit()
        self.context.session_id = None

        remember_claims = self._decode(
            self.context.cookies.get(self.settings.remember_cookie_name), REMEMBER_TOKEN_TYPE
        )
        if remember_claims is not None:
            self.tokens.revoke(
                str(remember_claims.get("sub") or ""), str(remember_claims.get("sec") or "")
            )

    def _open_session(self, user: User, now: datetime) -> None:
        expires_at = now + timedelta(minutes=self.settings.session_ttl_minutes)
        record = UserSession(user_id=user.id, created_at=now, expires_at=expires_at)
        self.db.add(record)
        self.db.commit()
        self.context.session_id = record.id

        claims = {
            "sub": user.id,
            "sid": record.id,
            "ver": user.session_version,
            "typ": SESSION_TOKEN_TYPE,
            "iat": now,
            "exp": expires_at,
        }
        self.context.set_cookie(self.settings.session_cookie_name, self._encode(claims))

    def _session_is_live(self, session_id: str, user_id: str) -> bool:
        if not session_id or not user_id:
            return False
        record = (
            self.db.query(UserSession)
            .filter(
                UserSession.id == session_id,
                UserSession.user_id == user_id,
                UserSession.expires_at > datetime.now(UTC),
            )
            .first()
        )
        return record is not None

    def _encode(self, claims: dict[str, Any]) -> str:
        return jwt.encode(claims, self.settings.secret_key, algorithm=self.settings.jwt_algorithm)

    def _decode(self, token: str | None, expected_type: str) -> dict[str, Any] | None:
        """Verify signature, expiry and type; any failure is just ``None``."""
        if not token:
            return None
        try:
            claims = jwt.decode(
                token, self.settings.secret_key, algorithms=[self.settings.jwt_algorithm]
            )
        except JWTError:
            return None
        if claims.get("typ") != expected_type:
            return None
        return claims


def purge_expired_sessions(db: Session) -> int:
    """Delete session rows whose expiry has passed."""
    deleted = (
        db.query(UserSession)
        .filter(UserSession.expires_at <= datetime.now(UTC))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
