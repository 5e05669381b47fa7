"""User model."""

import uuid

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from src.database import Base


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    """Registered account with derived password material."""

    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_user_id)
    name = Column(String(50), nullable=False)
    # Stored lower-cased; the unique index closes the check-then-insert race
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    password_salt = Column(String(64), nullable=False)
    session_version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    remember_tokens = relationship(
        "RememberToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email}>"
