"""Salted, deliberately slow password hashing."""

import hmac
import secrets

from passlib.context import CryptContext

from src.config import get_settings

SALT_BYTES = 16

# Password hashing context
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class PasswordHasher:
    """Derive and check password digests against an explicit per-user salt."""

    def __init__(self, rounds: int | None = None):
        self.rounds = rounds or get_settings().password_hash_rounds
        self._handler = pwd_context.handler("pbkdf2_sha256")

    @staticmethod
    def new_salt() -> str:
        """Return a fresh random salt, hex-encoded."""
        return secrets.token_hex(SALT_BYTES)

    def hash(self, plaintext: str, salt: str, rounds: int | None = None) -> str:
        """Derive the digest for ``plaintext`` under ``salt``.

        The same (plaintext, salt) pair always yields the same digest.
        """
        handler = self._handler.using(salt=bytes.fromhex(salt), rounds=rounds or self.rounds)
        return handler.hash(plaintext)

    def verify(self, plaintext: str, salt: str, digest: str) -> bool:
        """Recompute the digest and compare it in constant time."""
        if not plaintext or not salt or not digest:
            return False
        try:
            # Digests keep the work factor they were created with
            stored_rounds = self._handler.from_string(digest).rounds
            candidate = self.hash(plaintext, salt, rounds=stored_rounds)
        except ValueError:
            return False
        return hmac.compare_digest(candidate.encode("utf-8"), digest.encode("utf-8"))
