"""Text encodings for key material stored in relational columns.

Keys travel as standard base64, nonces as lowercase hex. Both decoders are
strict: anything outside the alphabet raises ``FormatError``.
"""
from __future__ import annotations

import base64
import binascii
import re

from otpvault.core.errors import FormatError

_HEX_RE = re.compile(r'\A[0-9a-fA-F]*\Z')


def b64_encode(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def b64_decode(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise FormatError('Invalid base64 input') from e


def hex_encode(data: bytes) -> str:
    return data.hex()


def hex_decode(text: str) -> bytes:
    if not isinstance(text, str) or not _HEX_RE.match(text):
        raise FormatError('Invalid hex input')
    if len(text) % 2:
        raise FormatError('Hex input must have an even length')
    return bytes.fromhex(text)
