# backend/otpvault/crud/accounts.py
"""In-process identity system: accounts keyed by email with an argon2 password hash."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from otpvault.core.errors import AuthError
from otpvault.core.logging_config import logger
from otpvault.core.security import hash_password, verify_password
from otpvault.models.account import Account


def get_by_email(db: Session, email: str) -> Account | None:
    stmt = select(Account).where(Account.email == email)
    return db.execute(stmt).scalar_one_or_none()


def account_exists(db: Session, email: str) -> bool:
    return get_by_email(db, email) is not None


def create_account(db: Session, email: str, password: str, pre_verified: bool = False) -> Account:
    """Create an account; if one already exists (including a concurrent insert) return it unchanged."""
    existing = get_by_email(db, email)
    if existing:
        return existing

    a = Account(
        email=email,
        password_hash=hash_password(password),
        email_verified=pre_verified,
    )
    db.add(a)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_by_email(db, email)
        if existing is None:
            raise
        return existing

    db.refresh(a)
    logger.info(f"Account created id={a.id} verified={pre_verified}")
    return a


def set_password(db: Session, account_id: int, password: str) -> Account:
    a = db.get(Account, account_id)
    if a is None:
        raise AuthError("Account not found")
    a.password_hash = hash_password(password)
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


def sign_in(db: Session, email: str, password: str) -> Account:
    a = get_by_email(db, email)
    if not a or not verify_password(password, a.password_hash):
        raise AuthError()
    return a
