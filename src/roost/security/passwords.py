"""Argon2id password hashing for admin accounts.

New hashes are argon2id PHC strings from ``argon2-cffi``. Verification
also accepts stdlib scrypt PHC strings (``$scrypt$n=..,r=..,p=..$salt$dk``)
so accounts imported from systems that used scrypt keep working.

Usage::

    from roost.security.passwords import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)
"""

import base64
import binascii
import hashlib
import hmac

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_ARGON2_PREFIX = "$argon2"
_SCRYPT_PREFIX = "$scrypt$"

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password with argon2id.

    Raises:
        ValueError: If *password* is empty.
    """
    if not password:
        msg = "Password must not be empty."
        raise ValueError(msg)
    return _hasher.hash(password)


def needs_rehash(phc_hash: str) -> bool:
    """True if *phc_hash* should be replaced by a fresh ``hash_password``."""
    if not phc_hash.startswith(_ARGON2_PREFIX):
        return True
    return _hasher.check_needs_rehash(phc_hash)


def verify_password(password: str, phc_hash: str) -> bool:
    """Verify a password against an argon2 or scrypt PHC hash.

    Returns ``False`` for empty input or a mismatch.

    Raises:
        ValueError: If the hash format is not recognized.
    """
    if not password or not phc_hash:
        return False

    if phc_hash.startswith(_ARGON2_PREFIX):
        try:
            return _hasher.verify(phc_hash, password)
        except (VerificationError, InvalidHashError):
            return False

    if phc_hash.startswith(_SCRYPT_PREFIX):
        return _verify_scrypt(password, phc_hash)

    msg = f"Unknown hash format: {phc_hash[:20]}..."
    raise ValueError(msg)


def _verify_scrypt(password: str, phc_hash: str) -> bool:
    # $scrypt$n=N,r=R,p=P$salt_b64$dk_b64
    parts = phc_hash.split("$")
    if len(parts) != 5:
        return False
    try:
        params = {key: int(value) for key, _, value in (p.partition("=") for p in parts[2].split(","))}
        salt = base64.b64decode(parts[3])
        expected = base64.b64decode(parts[4])
    except (ValueError, binascii.Error):
        return False

    derived = hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=params.get("n", 2**14),
        r=params.get("r", 8),
        p=params.get("p", 1),
        dklen=len(expected),
    )
    return hmac.compare_digest(derived, expected)
