# backend/otpvault/api/routes/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from otpvault.api.deps import get_notifier
from otpvault.core.errors import InvalidOrExpiredOtp
from otpvault.core.security import get_current_user, get_token_claims
from otpvault.db.session import get_db
from otpvault.models.account import Account
from otpvault.schemas.auth import AccountOut, OtpRequestIn, OtpRequestOut, OtpVerifyIn, TokenOut
from otpvault.security.rate_limit import get_rate_limit_delay, is_rate_limited, record_auth_attempt
from otpvault.services import otp as otp_service
from otpvault.services import sessions as session_service
from otpvault.services.notifier import Notifier

router = APIRouter(prefix="/auth", tags=["auth"])


def _throttle(key: str) -> None:
    if is_rate_limited(key):
        delay = get_rate_limit_delay(key)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many attempts. Try again in {int(delay)} seconds.",
        )


@router.post("/otp/request", response_model=OtpRequestOut, status_code=status.HTTP_202_ACCEPTED)
def request_otp(
    payload: OtpRequestIn,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    rate_limit_key = f"otp_request:{payload.email}"
    _throttle(rate_limit_key)
    # every request counts; only a successful verify clears the counter
    record_auth_attempt(rate_limit_key, success=False)

    otp = otp_service.request_code(db, payload.email, notifier)
    return OtpRequestOut(expires_at=otp.expires_at)


@router.post("/otp/verify", response_model=TokenOut)
def verify_otp(payload: OtpVerifyIn, db: Session = Depends(get_db)):
    rate_limit_key = f"otp_verify:{payload.email}"
    _throttle(rate_limit_key)

    try:
        login = otp_service.verify_code(db, payload.email, payload.code)
    except InvalidOrExpiredOtp:
        record_auth_attempt(rate_limit_key, success=False)
        raise

    record_auth_attempt(rate_limit_key, success=True)
    record_auth_attempt(f"otp_request:{payload.email}", success=True)
    return TokenOut(
        access_token=login.access_token,
        account_id=login.account.id,
        email=login.account.email,
        new_account=login.created,
    )


@router.get("/me", response_model=AccountOut)
def me(current_user: Account = Depends(get_current_user)):
    return current_user


@router.post("/logout")
def logout(
    current_user: Account = Depends(get_current_user),
    claims: dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
):
    """Revoke the bearer token used for this request."""
    session_service.sign_out(db, claims)
    return {"status": "ok", "message": "Logged out successfully"}
