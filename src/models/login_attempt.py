"""Failed login bookkeeping for throttling."""

from sqlalchemy import Column, Integer, String

from src.database import Base


class LoginAttempt(Base):
    """Failure counter per normalized (email, client_ip) principal.

    Timestamps are epoch seconds.
    """

    __tablename__ = "login_attempts"

    email = Column(String(255), primary_key=True)
    client_ip = Column(String(64), primary_key=True)
    failed_attempts = Column(Integer, nullable=False, default=0)
    first_failed_at = Column(Integer, nullable=False, default=0)
    last_failed_at = Column(Integer, nullable=False, default=0)
    locked_until = Column(Integer, nullable=False, default=0)
