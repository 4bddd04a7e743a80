from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import jwt, JWTError

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from otpvault.core.config import settings
from otpvault.db.session import get_db


_ph = PasswordHasher(
    time_cost=settings.ARGON2_TIME_COST,
    memory_cost=settings.ARGON2_MEMORY_COST,
    parallelism=settings.ARGON2_PARALLELISM,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    return _ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def create_access_token(subject: str, extra: dict | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)).timestamp()),
        "jti": uuid4().hex,
    }
    if extra:
        payload.update(extra)

    return jwt.encode(
        payload,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> dict | None:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        return None


_security = HTTPBearer()


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Depends(_security),
    db: Session = Depends(get_db),
) -> dict:
    """
    Dependency: decode the bearer token and refuse it if it was revoked by logout.
    Returns the verified claims.
    """
    from otpvault.crud import revoked_tokens  # avoid circular imports

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub") or not payload.get("otp") or not payload.get("jti"):
        raise _credentials_exception()

    if revoked_tokens.is_revoked(db, payload["jti"]):
        raise _credentials_exception()

    return payload


def get_current_user(
    payload: dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
):
    """
    Dependency: Extract JWT token, verify it, and fetch the Account from DB.
    Expects: Authorization: Bearer <token>
    Raises: HTTPException 401 if token invalid/expired/revoked/account not found
    """
    from otpvault.models.account import Account  # avoid circular imports

    try:
        account_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise _credentials_exception()

    account = db.get(Account, account_id)
    if not account:
        raise _credentials_exception()

    return account
