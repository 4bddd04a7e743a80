# backend/otpvault/crud/revoked_tokens.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from otpvault.models.revoked_token import RevokedToken


def is_revoked(db: Session, jti: str) -> bool:
    stmt = select(RevokedToken.id).where(RevokedToken.jti == jti)
    return db.execute(stmt).first() is not None


def revoke(db: Session, jti: str, expires_at: datetime) -> None:
    if is_revoked(db, jti):
        return
    db.add(RevokedToken(jti=jti, expires_at=expires_at))
    try:
        db.commit()
    except IntegrityError:
        # concurrent logout with the same token already stored it
        db.rollback()


def purge_expired(db: Session, now: datetime) -> int:
    res = db.execute(delete(RevokedToken).where(RevokedToken.expires_at < now))
    db.commit()
    return res.rowcount
