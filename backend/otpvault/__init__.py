"""End-to-end encrypted file storage with passwordless (OTP) email login."""

__version__ = "0.1.0"
