"""Default-deny access policy for request operations."""

import logging
from collections.abc import Iterable

from src.models.user import User
from src.services.exceptions import Unauthenticated

logger = logging.getLogger(__name__)

# Operations reachable without signing in; everything else needs a user
PUBLIC_OPERATIONS = frozenset(
    {
        "health",
        "auth.register_form",
        "auth.register",
        "auth.login_form",
        "auth.login",
    }
)


class AccessGate:
    """Decide whether an operation may run for the current caller."""

    def __init__(self, public_operations: Iterable[str] = PUBLIC_OPERATIONS):
        self.public_operations = frozenset(public_operations)

    def is_public(self, operation: str | None) -> bool:
        return operation is not None and operation in self.public_operations

    def check(self, operation: str | None, user: User | None) -> User | None:
        """Return the caller when allowed, raise Unauthenticated otherwise.

        Operations without a name are never public.
        """
        if self.is_public(operation):
            return user
        if user is None:
            logger.info(f"Denied anonymous access to {operation or 'unnamed operation'}")
            raise Unauthenticated(operation)
        return user
