# backend/otpvault/crud/credentials.py
from __future__ import annotations

import secrets

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from otpvault.models.credential import UserCredential


def generate_password() -> str:
    return secrets.token_urlsafe(24)


def get_by_email(db: Session, email: str) -> UserCredential | None:
    stmt = select(UserCredential).where(UserCredential.email == email)
    return db.execute(stmt).scalar_one_or_none()


def get_or_create(db: Session, email: str) -> UserCredential:
    """Return the email's credential, creating it on first use. Never rotates an existing one."""
    cred = get_by_email(db, email)
    if cred:
        return cred

    cred = UserCredential(email=email, password=generate_password())
    db.add(cred)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent first request for the same email
        db.rollback()
        cred = get_by_email(db, email)
        if cred is None:
            raise
        return cred

    db.refresh(cred)
    return cred
