"""
Password hashing.

Stored format: "<hex scrypt digest>.<hex salt>". Values without the "." come
from accounts created before hashing was introduced and are compared as
plaintext by verify_legacy_plaintext(); nothing new is ever stored that way.
"""

import hashlib
import hmac
import secrets

SEPARATOR = "."

# scrypt cost parameters: N=2**14, r=8, p=1 uses ~16 MiB per hash
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64
SALT_BYTES = 16


def _scrypt(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    salt = secrets.token_hex(SALT_BYTES)
    return f"{_scrypt(password, salt).hex()}{SEPARATOR}{salt}"


def verify_scrypt(supplied: str, stored: str) -> bool:
    digest_hex, _, salt = stored.partition(SEPARATOR)
    try:
        expected = bytes.fromhex(digest_hex)
    except ValueError:
        return False
    return hmac.compare_digest(_scrypt(supplied, salt), expected)


def verify_legacy_plaintext(supplied: str, stored: str) -> bool:
    # Compatibility shim for pre-hash accounts; do not extend.
    return hmac.compare_digest(supplied.encode("utf-8"), stored.encode("utf-8"))


def verify_password(supplied: str, stored: str) -> bool:
    if SEPARATOR in stored:
        return verify_scrypt(supplied, stored)
    return verify_legacy_plaintext(supplied, stored)
