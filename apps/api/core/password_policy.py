"""
Password Policy Validation

Applied when an administrator resets a user's password.

Requirements:
- Minimum PASSWORD_MIN_LENGTH characters (default 6)
- Maximum 72 characters (bcrypt limit)
- Not blank
"""
from typing import Tuple, List

from core.config import settings

BCRYPT_MAX_LENGTH = 72


def validate_password(password: str) -> Tuple[bool, List[str]]:
    """
    Validate password against security policy.

    Args:
        password: The password to validate

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    errors = []
    min_length = settings.PASSWORD_MIN_LENGTH

    if not password or not password.strip():
        errors.append("Password must not be blank")

    if len(password or "") < min_length:
        errors.append(f"Password must be at least {min_length} characters")

    # bcrypt silently truncates longer input
    if len((password or "").encode("utf-8")) > BCRYPT_MAX_LENGTH:
        errors.append(f"Password must not exceed {BCRYPT_MAX_LENGTH} bytes (bcrypt limit)")

    return len(errors) == 0, errors

