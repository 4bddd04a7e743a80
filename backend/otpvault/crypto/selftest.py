from __future__ import annotations

from otpvault.core.errors import AuthenticationFailure
from otpvault.crypto.codec import b64_decode, b64_encode, hex_decode, hex_encode
from otpvault.crypto.symmetric import (
    decrypt,
    encrypt,
    export_key,
    generate_key,
    generate_nonce,
    import_key,
)


def run_selftest() -> None:
    """Round-trip and tamper checks; raises ``RuntimeError`` if the AEAD stack misbehaves."""
    key = generate_key()
    nonce = generate_nonce()
    pt = b'hello encrypted world'

    ct = encrypt(pt, key, nonce)
    restored = import_key(b64_decode(b64_encode(export_key(key))))
    back = decrypt(ct, restored, hex_decode(hex_encode(nonce)))
    if back != pt:
        raise RuntimeError('AES-GCM roundtrip failed')

    tampered = ct[:-1] + bytes([ct[-1] ^ 0x01])
    try:
        decrypt(tampered, key, nonce)
    except AuthenticationFailure:
        pass
    else:
        raise RuntimeError('AES-GCM accepted a tampered ciphertext')


def main() -> None:
    run_selftest()
    print('OK: crypto selftest passed')


if __name__ == '__main__':
    main()
