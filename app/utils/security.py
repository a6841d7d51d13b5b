import re
import bcrypt
import hashlib
from typing import List

_PASSWORD_STRENGTH = re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
MIN_PASSWORD_LENGTH = 6


def _prepare(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    raw = password.encode("utf-8")
    if len(raw) > 72:
        raw = hashlib.sha256(raw).hexdigest().encode("utf-8")
    return raw


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt, pre-hashing inputs longer than 72 bytes.
    """
    return bcrypt.hashpw(_prepare(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plain-text password against a stored hash.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_prepare(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def password_problems(password: str) -> List[str]:
    """
    List the reasons a password fails the account password policy.
    """
    problems = []
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if password and not _PASSWORD_STRENGTH.search(password):
        problems.append(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    return problems
