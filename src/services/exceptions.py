"""Error kinds raised by the authentication core."""

INVALID_CREDENTIALS_MESSAGE = "Invalid email/password combination"


class AuthError(Exception):
    """Base class for authentication errors."""


class ValidationError(AuthError):
    """Registration or password-change input failed validation.

    ``errors`` maps field names to human-readable messages so the
    presentation layer can re-prompt field by field.
    """

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__("; ".join(f"{field} {msg}" for field, msgs in errors.items() for msg in msgs))


class DuplicateEmailError(ValidationError):
    """The email address is already registered."""

    def __init__(self):
        super().__init__({"email": ["has already been taken"]})


class InvalidCredentialsError(AuthError):
    """Login failed; deliberately silent about which part was wrong."""

    def __init__(self):
        super().__init__(INVALID_CREDENTIALS_MESSAGE)


class Unauthenticated(AuthError):
    """The requested operation needs a signed-in caller."""

    def __init__(self, operation: str | None = None):
        self.operation = operation
        super().__init__("Authentication required")


class TooManyAttemptsError(AuthError):
    """Login is temporarily locked for this principal."""

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"Too many login attempts. Retry after {retry_after} seconds.")
