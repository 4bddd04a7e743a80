# backend/otpvault/models/__init__.py
from .account import Account
from .credential import UserCredential
from .otp import OtpVerification
from .file import FileRecord
from .revoked_token import RevokedToken

__all__ = ["Account", "UserCredential", "OtpVerification", "FileRecord", "RevokedToken"]
