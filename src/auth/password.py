"""scrypt password hashing for operator accounts."""

import base64
import hashlib
import hmac
import os
import logging

logger = logging.getLogger(__name__)

SCRYPT_TAG = 'scrypt'
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64
SALT_BYTES = 16

# hashlib.scrypt refuses to allocate more than maxmem; 128 * r * N bytes plus headroom
_MAX_MEM = 64 * 1024 * 1024


def _derive(password: str, salt: bytes, n: int, r: int, p: int, dklen: int) -> bytes:
    return hashlib.scrypt(
        password.encode('utf-8'),
        salt=salt,
        n=n,
        r=r,
        p=p,
        dklen=dklen,
        maxmem=_MAX_MEM
    )


def hash_password(password: str) -> str:
    """
    Hash a password with scrypt.

    Args:
        password: Plaintext password

    Returns:
        Encoded hash ``scrypt$N$r$p$<salt b64>$<hash b64>``
    """
    salt = os.urandom(SALT_BYTES)
    derived = _derive(password, salt, SCRYPT_N, SCRYPT_R, SCRYPT_P, KEY_LENGTH)

    salt_b64 = base64.b64encode(salt).decode('ascii')
    hash_b64 = base64.b64encode(derived).decode('ascii')
    return f"{SCRYPT_TAG}${SCRYPT_N}${SCRYPT_R}${SCRYPT_P}${salt_b64}${hash_b64}"


def verify_password(password: str, stored: str) -> bool:
    """
    Check a password against a stored value.

    The cost parameters and key length are taken from the stored string, not
    the current defaults. Values without the scrypt tag are legacy plaintext
    and compared verbatim. Never raises.

    Args:
        password: Plaintext password to check
        stored: Stored hash (or legacy plaintext)

    Returns:
        True if the password matches
    """
    try:
        if stored.startswith(f"{SCRYPT_TAG}$"):
            _, n_str, r_str, p_str, salt_b64, hash_b64 = stored.split('$')
            salt = base64.b64decode(salt_b64)
            expected = base64.b64decode(hash_b64)

            derived = _derive(
                password, salt, int(n_str), int(r_str), int(p_str), len(expected)
            )
            return hmac.compare_digest(expected, derived)

        # Legacy fallback (plaintext stored)
        return password == stored
    except Exception as e:
        logger.warning(f"Password verification failed on malformed hash: {e}")
        return False
