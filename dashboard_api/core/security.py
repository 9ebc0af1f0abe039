"""Security utilities - password hashing, API key digests, secret generation"""

from functools import lru_cache
import hashlib
import hmac
import secrets
import string
from typing import Optional

import bcrypt

from dashboard_api.config import settings


_PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password

    Returns:
        bool: True if password matches
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    ).decode('utf-8')


@lru_cache()
def dummy_password_hash() -> str:
    """
    A bcrypt hash at the configured cost, checked against when the account
    does not exist so that unknown and known identifiers take the same time.
    """
    return get_password_hash(secrets.token_urlsafe(16))


def verify_password_or_dummy(plain_password: str, hashed_password: Optional[str]) -> bool:
    if hashed_password is None:
        verify_password(plain_password, dummy_password_hash())
        return False
    return verify_password(plain_password, hashed_password)


def generate_password(length: int = 16) -> str:
    """
    Generate a strong random password containing at least one lowercase,
    uppercase, digit and symbol character.
    """
    while True:
        password = "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))
        if (
            any(c.islower() for c in password)
            and any(c.isupper() for c in password)
            and any(c.isdigit() for c in password)
            and any(c in "!@#$%^&*" for c in password)
        ):
            return password


def generate_api_key() -> str:
    """Generate a device API key (64 hex characters)"""
    return secrets.token_hex(32)


def hash_api_key(api_key: str) -> str:
    """HMAC-SHA256 digest of an API key, keyed with the signing secret"""
    return hmac.new(
        settings.JWT_SECRET.encode("utf-8"),
        api_key.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


_DUMMY_API_KEY_HASH = "0" * 64


def verify_api_key(api_key: str, stored_hash: Optional[str]) -> bool:
    """
    Constant-time comparison of a presented API key against the stored digest.

    An absent device is compared against a fixed dummy digest so that both
    failure paths do the same work.
    """
    presented = hash_api_key(api_key)
    if stored_hash is None:
        hmac.compare_digest(presented, _DUMMY_API_KEY_HASH)
        return False
    return hmac.compare_digest(presented, stored_hash)
