"""Remember-me token model."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from src.database import Base


class RememberToken(Base):
    """Persisted half of a remember-me credential.

    Only a SHA-256 digest of the random secret is kept; the secret itself
    lives solely in the signed client cookie.
    """

    __tablename__ = "remember_tokens"
    __table_args__ = (UniqueConstraint("user_id", "secret_hash", name="uq_remember_tokens_user_secret"),)

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    secret_hash = Column(String(64), nullable=False)
    issued_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    user = relationship("User", back_populates="remember_tokens")

    def __repr__(self) -> str:
        return f"<RememberToken id={self.id} user_id={self.user_id}>"
