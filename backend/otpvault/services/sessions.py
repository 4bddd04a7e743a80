# backend/otpvault/services/sessions.py
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from otpvault.core.errors import StorageError
from otpvault.core.logging_config import logger
from otpvault.crud import revoked_tokens
from otpvault.models._time import utcnow


def sign_out(db: Session, claims: dict) -> None:
    """Revoke the token these claims came from until it would have expired anyway."""
    expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc).replace(tzinfo=None)
    try:
        revoked_tokens.revoke(db, claims["jti"], expires_at)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Failed to record logout") from e
    logger.info(f"Account {claims['sub']} logged out")


def purge_revoked_tokens(db: Session, now: datetime | None = None) -> int:
    now = now or utcnow()
    try:
        removed = revoked_tokens.purge_expired(db, now)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Failed to purge revoked tokens") from e
    if removed:
        logger.info(f"Purged {removed} expired revoked token(s)")
    return removed
