"""
Domain error taxonomy.

Services raise these; the HTTP layer maps each class to a status code in
``otpvault.main``. Nothing in the core retries on them except the single
sign-in fallback in ``services.otp.verify_code``.
"""
from __future__ import annotations


class VaultError(Exception):
    """Base class for every error the core surfaces to its caller."""

    status_code: int = 500
    public_detail: str = "Internal Server Error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_detail)

    @property
    def detail(self) -> str:
        return str(self)


class ValidationError(VaultError, ValueError):
    """Bad email/code format or oversized input, raised before any crypto work."""

    status_code = 400
    public_detail = "Invalid input"


class FileTooLarge(ValidationError):
    status_code = 413
    public_detail = "File too large"


class FormatError(ValidationError):
    """Text encoding could not be decoded back to bytes."""

    public_detail = "Malformed encoded value"


class CryptoError(VaultError):
    """Malformed key or nonce material."""

    public_detail = "Invalid key material"


class AuthenticationFailure(VaultError):
    """AEAD tag did not verify: tampering, wrong key or wrong nonce."""

    public_detail = "File integrity check failed"


class InvalidOrExpiredOtp(VaultError):
    # One message for wrong, expired and already-used codes.
    status_code = 400
    public_detail = "Invalid or expired OTP"


class StorageError(VaultError):
    """Blob or record store operation failed."""

    status_code = 502
    public_detail = "Storage operation failed"


class AuthError(VaultError):
    """Identity system rejected the credentials."""

    status_code = 401
    public_detail = "Invalid credentials"


class DeliveryError(VaultError):
    status_code = 502
    public_detail = "Failed to send code"
