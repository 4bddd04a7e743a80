# backend/otpvault/crud/otps.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from otpvault.models.otp import OtpVerification


def create(
    db: Session,
    email: str,
    code: str,
    password: str,
    expires_at: datetime,
    created_at: datetime | None = None,
) -> OtpVerification:
    otp = OtpVerification(
        email=email,
        otp_code=code,
        password=password,
        expires_at=expires_at,
        verified=False,
    )
    if created_at is not None:
        otp.created_at = created_at
    db.add(otp)
    db.commit()
    db.refresh(otp)
    return otp


def find_live(db: Session, email: str, code: str, now: datetime) -> OtpVerification | None:
    """Most recently created unverified, unexpired record for (email, code)."""
    stmt = (
        select(OtpVerification)
        .where(
            OtpVerification.email == email,
            OtpVerification.otp_code == code,
            OtpVerification.verified == False,  # noqa: E712
            OtpVerification.expires_at > now,
        )
        .order_by(OtpVerification.created_at.desc(), OtpVerification.id.desc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def mark_verified(db: Session, otp_id: int) -> bool:
    """Flip ``verified`` only if still unverified; False means another request consumed it first."""
    res = db.execute(
        update(OtpVerification)
        .where(OtpVerification.id == otp_id, OtpVerification.verified == False)  # noqa: E712
        .values(verified=True)
    )
    db.commit()
    return res.rowcount == 1


def invalidate_outstanding(db: Session, email: str) -> int:
    res = db.execute(
        update(OtpVerification)
        .where(OtpVerification.email == email, OtpVerification.verified == False)  # noqa: E712
        .values(verified=True)
    )
    db.commit()
    return res.rowcount


def purge_older_than(db: Session, cutoff: datetime) -> int:
    """Delete codes that expired before ``cutoff`` and used codes created before it."""
    res = db.execute(
        delete(OtpVerification).where(
            or_(
                OtpVerification.expires_at < cutoff,
                (OtpVerification.verified == True) & (OtpVerification.created_at < cutoff),  # noqa: E712
            )
        )
    )
    db.commit()
    return res.rowcount
