"""Server-side handle for a signed session cookie."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, func

from src.database import Base


class UserSession(Base):
    """One row per live session; the cookie only resolves while its row exists."""

    __tablename__ = "user_sessions"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<UserSession id={self.id} user_id={self.user_id}>"
