"""
bcrypt password hashes for customers, staff and admins.
"""

import bcrypt

from tablebook_shared.config.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ROUNDS = 12


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for a wrong password and for any stored value that is not a bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode(), (hashed_password or "").encode())
    except ValueError:
        logger.warning("Stored password is not a bcrypt hash")
        return False
