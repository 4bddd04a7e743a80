import os

import pytest

from otpvault.core.errors import AuthenticationFailure, CryptoError, FormatError, ValidationError
from otpvault.crypto.codec import b64_decode, b64_encode, hex_decode, hex_encode
from otpvault.crypto.selftest import run_selftest
from otpvault.crypto.symmetric import (
    AESGCM_NONCE_LEN,
    AESGCM_TAG_LEN,
    EncryptionKey,
    decrypt,
    encrypt,
    export_key,
    generate_key,
    generate_nonce,
    import_key,
)


@pytest.mark.parametrize("size", [0, 1, 10, 4096, 64 * 1024 + 3])
def test_roundtrip(size):
    data = os.urandom(size)
    key, nonce = generate_key(), generate_nonce()
    ct = encrypt(data, key, nonce)
    assert len(ct) == size + AESGCM_TAG_LEN
    assert decrypt(ct, key, nonce) == data


def test_encrypt_is_deterministic_for_same_inputs():
    key, nonce = generate_key(), generate_nonce()
    assert encrypt(b"same", key, nonce) == encrypt(b"same", key, nonce)
    assert encrypt(b"same", key, nonce) != encrypt(b"same", key, generate_nonce())


def test_every_bit_flip_is_detected():
    key, nonce = generate_key(), generate_nonce()
    ct = encrypt(b"0123456789", key, nonce)
    for i in range(len(ct)):
        for bit in range(8):
            tampered = bytearray(ct)
            tampered[i] ^= 1 << bit
            with pytest.raises(AuthenticationFailure):
                decrypt(bytes(tampered), key, nonce)


def test_wrong_key_or_nonce_fails():
    key, nonce = generate_key(), generate_nonce()
    ct = encrypt(b"secret", key, nonce)
    with pytest.raises(AuthenticationFailure):
        decrypt(ct, generate_key(), nonce)
    with pytest.raises(AuthenticationFailure):
        decrypt(ct, key, generate_nonce())


def test_truncated_ciphertext_fails():
    key, nonce = generate_key(), generate_nonce()
    with pytest.raises(AuthenticationFailure):
        decrypt(b"short", key, nonce)


def test_nonces_do_not_repeat():
    seen = {generate_nonce() for _ in range(10_000)}
    assert len(seen) == 10_000
    assert all(len(n) == AESGCM_NONCE_LEN for n in seen)


def test_bad_material_lengths():
    key = generate_key()
    with pytest.raises(CryptoError):
        encrypt(b"x", key, b"\x00" * 8)
    with pytest.raises(CryptoError):
        decrypt(b"x" * 32, key, b"\x00" * 16)
    with pytest.raises(CryptoError):
        import_key(b"\x00" * 16)
    with pytest.raises(CryptoError):
        EncryptionKey(b"\x00" * 31)


def test_key_export_import():
    key = generate_key()
    raw = export_key(key)
    assert len(raw) == 32
    assert import_key(raw) == key
    assert "redacted" in repr(key) and raw.hex() not in repr(key)


def test_selftest_passes():
    run_selftest()


@pytest.mark.parametrize("data", [b"", b"\x00", os.urandom(3 * 1024)])
def test_codec_roundtrip(data):
    assert b64_decode(b64_encode(data)) == data
    assert hex_decode(hex_encode(data)) == data


def test_hex_is_lowercase_and_case_insensitive_on_input():
    assert hex_encode(b"\xab\xcd") == "abcd"
    assert hex_decode("ABCD") == b"\xab\xcd"


@pytest.mark.parametrize("text", ["abc", "zz", "0g", "12 34"])
def test_hex_rejects_malformed(text):
    with pytest.raises(FormatError):
        hex_decode(text)


@pytest.mark.parametrize("text", ["@@@@", "abc", "YWJj\n", "ééé="])
def test_base64_rejects_malformed(text):
    with pytest.raises(FormatError):
        b64_decode(text)


def test_format_error_is_a_validation_error():
    assert issubclass(FormatError, ValidationError)
