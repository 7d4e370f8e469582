"""Password hashing and verification using Argon2id

This module provides secure password hashing using Argon2id with OWASP-recommended
parameters and a global PASSWORD_PEPPER for additional security.

OWASP Parameters:
- Memory cost: 65536 KB (64 MB)
- Time cost: 3 iterations
- Parallelism: 4 threads
"""

import re

from argon2 import PasswordHasher, Type
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError

from ..config import get_settings


_hasher = PasswordHasher(
    memory_cost=65536,  # 64 MB
    time_cost=3,
    parallelism=4,
    hash_len=32,
    salt_len=16,
    type=Type.ID  # Argon2id variant
)


def _get_pepper() -> str:
    """Get PASSWORD_PEPPER from settings.

    Raises:
        ValueError: If PASSWORD_PEPPER is empty
    """
    pepper = get_settings().PASSWORD_PEPPER
    if not pepper:
        raise ValueError("PASSWORD_PEPPER is not configured")
    return pepper


def hash_password(password: str) -> str:
    """Hash a password using Argon2id with global pepper.

    The pepper is server-side only and not stored in the database.

    Returns:
        str: Argon2id hash string (format: $argon2id$v=19$m=65536,t=3,p=4$...$...)

    Raises:
        ValueError: If PASSWORD_PEPPER is not set or password is empty
    """
    if not password:
        raise ValueError("Password cannot be empty")

    return _hasher.hash(password + _get_pepper())


def verify_password(password: str, hash: str) -> bool:
    """Verify a password against an Argon2id hash.

    Returns:
        bool: True if password matches hash, False otherwise
    """
    if not password or not hash:
        return False

    try:
        _hasher.verify(hash, password + _get_pepper())
        return True
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def validate_password_strength(password: str) -> tuple[bool, str]:
    """Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character

    Example:
        >>> validate_password_strength("weak")
        (False, "Password must be at least 8 characters long")
        >>> validate_password_strength("SecureP@ss123")
        (True, "")
    """
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"

    if not re.search(r'[A-Z]', password):
        return False, "Password must contain at least one uppercase letter"

    if not re.search(r'[a-z]', password):
        return False, "Password must contain at least one lowercase letter"

    if not re.search(r'\d', password):
        return False, "Password must contain at least one digit"

    if not re.search(r'[!@#$%^&*(),.?":{}|<>_\-+=\[\]\\\/~`]', password):
        return False, "Password must contain at least one special character"

    return True, ""
