"""
Password hashing and strength policy.
"""

import re
from typing import List

import bcrypt

from moneybook.config import settings

PASSWORD_MIN_LENGTH = 8
# bcrypt only looks at the first 72 bytes of its input
PASSWORD_MAX_BYTES = 72


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long input
        return False


def password_policy_violations(password: str) -> List[str]:
    """Return every strength rule the password breaks (empty when it is acceptable)."""
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"must be at least {PASSWORD_MIN_LENGTH} characters long")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        problems.append(f"must not exceed {PASSWORD_MAX_BYTES} bytes")
    if not re.search(r"[a-z]", password):
        problems.append("must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", password):
        problems.append("must contain at least one uppercase letter")
    if not re.search(r"\d", password):
        problems.append("must contain at least one number")
    if not re.search(r"[^A-Za-z0-9\s]", password):
        problems.append("must contain at least one special character")
    return problems
