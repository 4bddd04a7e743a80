from __future__ import annotations

import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from otpvault.core.errors import AuthenticationFailure, CryptoError


AESGCM_KEY_LEN = 32
AESGCM_NONCE_LEN = 12
AESGCM_TAG_LEN = 16


@dataclass(frozen=True)
class EncryptionKey:
    """A 256-bit AES-GCM key. ``repr`` never shows the key bytes."""

    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, (bytes, bytearray)) or len(self.raw) != AESGCM_KEY_LEN:
            raise CryptoError('AES-256-GCM requires a 32-byte key')

    def __repr__(self) -> str:
        return 'EncryptionKey(<redacted>)'


def generate_key() -> EncryptionKey:
    return EncryptionKey(os.urandom(AESGCM_KEY_LEN))


def generate_nonce() -> bytes:
    # Fresh from the OS CSPRNG on every call, never cached.
    return os.urandom(AESGCM_NONCE_LEN)


def export_key(key: EncryptionKey) -> bytes:
    return bytes(key.raw)


def import_key(raw: bytes) -> EncryptionKey:
    return EncryptionKey(bytes(raw))


def _check(key: EncryptionKey, nonce: bytes) -> None:
    if not isinstance(key, EncryptionKey):
        raise CryptoError('Expected an EncryptionKey')
    if not isinstance(nonce, (bytes, bytearray)) or len(nonce) != AESGCM_NONCE_LEN:
        raise CryptoError('AES-GCM requires a 12-byte nonce')


def encrypt(plaintext: bytes, key: EncryptionKey, nonce: bytes) -> bytes:
    """Return ``ciphertext || tag`` (16-byte tag appended, standard GCM layout)."""
    _check(key, nonce)
    return AESGCM(key.raw).encrypt(bytes(nonce), bytes(plaintext), None)


def decrypt(ciphertext: bytes, key: EncryptionKey, nonce: bytes) -> bytes:
    _check(key, nonce)
    if len(ciphertext) < AESGCM_TAG_LEN:
        raise AuthenticationFailure('Ciphertext shorter than the authentication tag')
    try:
        return AESGCM(key.raw).decrypt(bytes(nonce), bytes(ciphertext), None)
    except InvalidTag as e:
        raise AuthenticationFailure() from e
