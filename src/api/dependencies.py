"""FastAPI dependencies for authentication and database."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from src.database import get_db
from src.models.user import User
from src.services.access import AccessGate
from src.services.credentials import CredentialStore
from src.services.exceptions import Unauthenticated
from src.services.rate_limiter import LoginRateLimiter
from src.services.session import AuthContext, SessionManager

access_gate = AccessGate()


def get_auth_context(request: Request) -> AuthContext:
    """Get the per-request auth context created by the middleware."""
    context = getattr(request.state, "auth", None)
    if context is None:
        client_ip = request.client.host if request.client else ""
        context = AuthContext(cookies=dict(request.cookies), client_ip=client_ip)
        request.state.auth = context
    return context


def get_credential_store(
    db: Annotated[Session, Depends(get_db)],
) -> CredentialStore:
    """Get credential store bound to this request's database session."""
    return CredentialStore(db)


def get_session_manager(
    db: Annotated[Session, Depends(get_db)],
    context: Annotated[AuthContext, Depends(get_auth_context)],
    credentials: Annotated[CredentialStore, Depends(get_credential_store)],
) -> SessionManager:
    """Get session manager for this request context."""
    return SessionManager(
        db,
        context,
        credentials=credentials,
        rate_limiter=LoginRateLimiter(db),
    )


def enforce_access(
    request: Request,
    manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> None:
    """Apply the default-deny policy to the matched route."""
    route = request.scope.get("route")
    operation = getattr(route, "name", None)
    if access_gate.is_public(operation):
        return
    access_gate.check(operation, manager.current_user())


def get_current_user(
    manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> User:
    """Get the signed-in user or raise Unauthenticated."""
    user = manager.current_user()
    if user is None:
        raise Unauthenticated()
    return user
