"""
Authentication utilities: Password hashing and session token generation
"""

import secrets
import string
from passlib.context import CryptContext

# Password hashing context
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)

# Session tokens are two base-36 segments of 13 characters each
BASE36_ALPHABET = string.digits + string.ascii_lowercase
TOKEN_SEGMENT_LENGTH = 13


def hash_password(password: str) -> str:
    """Hash a password using argon2"""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    if not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Not a hash passlib recognises
        return False


def _base36_segment(length: int = TOKEN_SEGMENT_LENGTH) -> str:
    return "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))


def generate_session_token() -> str:
    """
    Create an opaque session token.

    Returns:
        Two concatenated random base-36 segments (26 characters)
    """
    return _base36_segment() + _base36_segment()
