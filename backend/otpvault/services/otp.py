# backend/otpvault/services/otp.py
"""
Passwordless login: one-time codes bootstrap a session.

Every email gets one server-generated password (``UserCredential``) the first
time it asks for a code; it is never rotated. A verified code applies that
password to the account and signs in with it, all server side, so the caller
receives a session token and never the password.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from otpvault.core.config import settings
from otpvault.core.errors import AuthError, InvalidOrExpiredOtp, StorageError
from otpvault.core.logging_config import logger
from otpvault.core.security import create_access_token
from otpvault.crud import accounts, credentials, otps
from otpvault.models._time import utcnow
from otpvault.models.account import Account
from otpvault.models.otp import OtpVerification
from otpvault.security.sanitizer import InputSanitizer
from otpvault.services.notifier import Notifier, OtpMessage

OTP_LENGTH = 6


@dataclass(frozen=True)
class OtpLogin:
    account: Account
    access_token: str
    created: bool


def generate_code() -> str:
    """Uniform 6-digit code, zero padded ("007123")."""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def request_code(
    db: Session,
    email: str,
    notifier: Notifier,
    now: datetime | None = None,
) -> OtpVerification:
    email = InputSanitizer.normalize_email(email)
    now = now or utcnow()

    try:
        cred = credentials.get_or_create(db, email)
        if settings.OTP_INVALIDATE_PREVIOUS:
            dropped = otps.invalidate_outstanding(db, email)
            if dropped:
                logger.info(f"Invalidated {dropped} outstanding code(s) for {email}")
        otp = otps.create(
            db,
            email=email,
            code=generate_code(),
            password=cred.password,
            expires_at=now + timedelta(minutes=settings.OTP_TTL_MINUTES),
            created_at=now,
        )
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Failed to issue code") from e

    # DeliveryError propagates; the record stays so a late-arriving email still works.
    notifier.send(OtpMessage(email=email, code=otp.otp_code))
    logger.info(f"OTP issued id={otp.id} email={email} expires_at={otp.expires_at.isoformat()}")
    return otp


def _resolve_password(db: Session, email: str, otp: OtpVerification) -> str:
    cred = credentials.get_by_email(db, email)
    if cred:
        if otp.password and otp.password != cred.password:
            logger.warning(f"Credential and OTP password differ for {email}; using credential")
        return cred.password
    if otp.password:
        logger.warning(f"No credential row for {email}; falling back to the OTP's stored password")
        return otp.password
    raise AuthError("No credential on record")


def _sign_in_with_fallback(db: Session, email: str, password: str) -> Account:
    try:
        return accounts.sign_in(db, email, password)
    except AuthError:
        logger.warning(f"Sign-in after OTP failed for {email}; ensuring account and retrying once")
    accounts.create_account(db, email, password, pre_verified=True)
    return accounts.sign_in(db, email, password)


def verify_code(
    db: Session,
    email: str,
    code: str,
    now: datetime | None = None,
) -> OtpLogin:
    email = InputSanitizer.normalize_email(email)
    code = InputSanitizer.validate_otp_code(code)
    now = now or utcnow()

    try:
        otp = otps.find_live(db, email, code, now)
        # conditional update: a concurrent verify of the same code loses here
        if otp is None or not otps.mark_verified(db, otp.id):
            raise InvalidOrExpiredOtp()

        password = _resolve_password(db, email, otp)

        existing = accounts.get_by_email(db, email)
        if existing:
            accounts.set_password(db, existing.id, password)
        else:
            accounts.create_account(db, email, password, pre_verified=True)

        account = _sign_in_with_fallback(db, email, password)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Failed to verify code") from e

    token = create_access_token(subject=str(account.id), extra={"otp": True, "email": email})
    logger.info(f"OTP verified id={otp.id} account={account.id} new={existing is None}")
    return OtpLogin(account=account, access_token=token, created=existing is None)


def purge_expired_otps(db: Session, now: datetime | None = None) -> int:
    """Drop codes past the retention horizon so the table does not grow without bound."""
    now = now or utcnow()
    cutoff = now - timedelta(hours=settings.OTP_RETENTION_HOURS)
    try:
        removed = otps.purge_older_than(db, cutoff)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Failed to purge expired codes") from e
    if removed:
        logger.info(f"Purged {removed} stale OTP record(s)")
    return removed
