"""
Crypto utilities — bcrypt password hashing.

Supports both bcrypt ($2b$/$2a$) and werkzeug (scrypt/pbkdf2) hashes so
accounts imported from another store keep working.
"""

import bcrypt
from werkzeug.security import check_password_hash

DEFAULT_ROUNDS = 12

# bcrypt only reads the first 72 bytes; bcrypt>=5 raises beyond that
MAX_PASSWORD_BYTES = 72


def password_too_long(plain_password: str) -> bool:
    return len(plain_password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(plain_password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a plain-text password with bcrypt.

    Raises ValueError for passwords over ``MAX_PASSWORD_BYTES``; callers
    validate the length first.
    """
    if password_too_long(plain_password):
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain-text password against its hash."""
    if not password_hash:
        return False

    if password_hash.startswith(("$2b$", "$2a$")):
        if password_too_long(plain_password):
            return False
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )

    return check_password_hash(password_hash, plain_password)
