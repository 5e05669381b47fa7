"""SQLAlchemy models."""

from src.models.login_attempt import LoginAttempt
from src.models.remember_token import RememberToken
from src.models.user import User
from src.models.user_session import UserSession

__all__ = [
    "User",
    "UserSession",
    "RememberToken",
    "LoginAttempt",
]
