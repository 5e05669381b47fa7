"""Celery tasks for session and remember-token housekeeping."""

import logging

from sqlalchemy.orm import Session

from src.celery_app import app as celery_app
from src.database import SessionLocal
from src.services.session import purge_expired_sessions
from src.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)


@celery_app.task
def purge_expired_remember_tokens() -> dict:
    """Delete remember tokens and session rows past their expiry.

    Runs hourly via celery-beat. Expired tokens and sessions already fail
    validation; this only keeps the tables small.
    """
    db: Session = SessionLocal()
    try:
        purged = TokenIssuer(db).purge_expired()
        sessions_purged = purge_expired_sessions(db)
        logger.info(
            f"Purged {purged} expired remember token(s) and {sessions_purged} expired session(s)"
        )
        return {"purged": purged, "sessions_purged": sessions_purged}
    finally:
        db.close()
