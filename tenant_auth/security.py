import secrets
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

# Argon2 hasher with secure defaults
# Argon2id is recommended variant (combines Argon2i and Argon2d)
ph = PasswordHasher()

SESSION_TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    """
    Hash password using Argon2id.

    A fresh random salt is generated on every call, so hashing the same
    password twice yields two different strings.

    Returns hash string that includes algorithm parameters and salt.
    Format: $argon2id$v=19$m=65536,t=3,p=4$salt$hash
    """
    if not password:
        raise ValueError("Password must not be empty")
    return ph.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """
    Verify password against stored hash.

    Uses constant-time comparison internally to prevent timing attacks.
    Returns False for a mismatch, a missing hash or a malformed hash.
    """
    if not password or not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_session_token() -> str:
    """
    Generate cryptographically secure session token.

    Uses 32 bytes (256 bits) of randomness.
    Hex encoded = 64 character string.
    """
    return secrets.token_hex(SESSION_TOKEN_BYTES)
