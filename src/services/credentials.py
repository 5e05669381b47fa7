"""Credential store: user records, validation and password checks."""

import logging
import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.user import User
from src.models.user_session import UserSession
from src.services.exceptions import DuplicateEmailError, ValidationError
from src.services.passwords import PasswordHasher
from src.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)

VALID_EMAIL_REGEX = re.compile(r"^[\w+\-.]+@[a-z\d\-.]+\.[a-z]+$", re.IGNORECASE)
NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 255


def normalize_email(email: str | None) -> str:
    """Canonical form used for storage and lookups."""
    return (email or "").strip().lower()


class CredentialStore:
    """Owns user records and the derived secrets stored on them."""

    def __init__(self, db: Session, hasher: PasswordHasher | None = None):
        self.db = db
        self.hasher = hasher or PasswordHasher()
        settings = get_settings()
        self.password_min_length = settings.password_min_length
        self.password_max_length = settings.password_max_length

    def find_by_email(self, email: str) -> User | None:
        """Get a user by (case-insensitive) email."""
        key = normalize_email(email)
        if not key:
            return None
        return self.db.query(User).filter(User.email == key).first()

    def find_by_id(self, user_id: str) -> User | None:
        """Get a user by id."""
        if not user_id:
            return None
        return self.db.query(User).filter(User.id == user_id).first()

    def verify_password(self, user: User, plaintext: str) -> bool:
        """Check a plaintext password against the user's stored digest."""
        return self.hasher.verify(plaintext, user.password_salt, user.password_hash)

    def register(
        self,
        name: str,
        email: str,
        password: str,
        password_confirmation: str,
    ) -> User:
        """Validate the registration form and create the user.

        Raises:
            ValidationError: with per-field messages when any field is invalid
            DuplicateEmailError: when the email is already taken, whether found
                by the pre-check or rejected by the unique index at commit
        """
        name = (name or "").strip()
        email = normalize_email(email)

        errors: dict[str, list[str]] = {}
        self._validate_name(name, errors)
        self._validate_email(email, errors)
        self._validate_password(password, password_confirmation, errors)
        if errors:
            raise ValidationError(errors)

        if self.find_by_email(email) is not None:
            raise DuplicateEmailError()

        salt = self.hasher.new_salt()
        user = User(
            name=name,
            email=email,
            password_salt=salt,
            password_hash=self.hasher.hash(password, salt),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent registration won the race for this email
            self.db.rollback()
            raise DuplicateEmailError() from None
        self.db.refresh(user)

        logger.info(f"Registered user {user.id}")
        return user

    def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        password_confirmation: str,
    ) -> User:
        """Replace the user's password, re-salting and revoking all remember tokens.

        Every open session of the user is closed too; bumping ``session_version``
        also stops session cookies signed before the change from resolving.
        """
        errors: dict[str, list[str]] = {}
        if not self.verify_password(user, current_password or ""):
            errors.setdefault("current_password", []).append("is incorrect")
        self._validate_password(new_password, password_confirmation, errors)
        if errors:
            raise ValidationError(errors)

        salt = self.hasher.new_salt()
        user.password_salt = salt
        user.password_hash = self.hasher.hash(new_password, salt)
        user.session_version = (user.session_version or 1) + 1
        self.db.query(UserSession).filter(UserSession.user_id == user.id).delete(
            synchronize_session=False
        )
        # Commits the new digest and the revocation together
        TokenIssuer(self.db).revoke_all(user.id)
        self.db.refresh(user)

        logger.info(f"Password changed for user {user.id}; sessions and remember tokens revoked")
        return user

    def delete_user(self, user: User) -> None:
        """Destroy the account together with every remember token it owns."""
        user_id = user.id
        TokenIssuer(self.db).revoke_all(user_id)
        self.db.delete(user)
        self.db.commit()
        logger.info(f"Deleted user {user_id}")

    def _validate_name(self, name: str, errors: dict[str, list[str]]) -> None:
        if not name:
            errors.setdefault("name", []).append("can't be blank")
        elif len(name) > NAME_MAX_LENGTH:
            errors.setdefault("name", []).append(
                f"is too long (maximum is {NAME_MAX_LENGTH} characters)"
            )

    def _validate_email(self, email: str, errors: dict[str, list[str]]) -> None:
        if not email:
            errors.setdefault("email", []).append("can't be blank")
        elif len(email) > EMAIL_MAX_LENGTH:
            errors.setdefault("email", []).append(
                f"is too long (maximum is {EMAIL_MAX_LENGTH} characters)"
            )
        elif not VALID_EMAIL_REGEX.match(email):
            errors.setdefault("email", []).append("is invalid")

    def _validate_password(
        self,
        password: str | None,
        confirmation: str | None,
        errors: dict[str, list[str]],
    ) -> None:
        password = password or ""
        if not password:
            errors.setdefault("password", []).append("can't be blank")
        elif not self.password_min_length <= len(password) <= self.password_max_length:
            errors.setdefault("password", []).append(
                f"must be between {self.password_min_length} and "
                f"{self.password_max_length} characters"
            )
        if password != (confirmation or ""):
            errors.setdefault("password_confirmation", []).append("doesn't match password")
