"""
Validation utilities for FitBook forms.

Provides password and email checks, name sanitizing, specialty parsing
and session time checks.
"""

import re
from datetime import time
from typing import List, Tuple


class PasswordValidator:
    """
    Password policy matching the auth backend defaults.

    - Minimum 6 characters
    - Maximum 72 characters (bcrypt input limit)
    """

    MIN_LENGTH = 6
    MAX_LENGTH = 72

    @classmethod
    def validate(cls, password: str) -> Tuple[bool, str]:
        """
        Validate password length.

        Args:
            password: Password string to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not password:
            return False, "Password is required"

        if len(password) < cls.MIN_LENGTH:
            return False, f"Password must be at least {cls.MIN_LENGTH} characters long"

        if len(password) > cls.MAX_LENGTH:
            return False, f"Password must not exceed {cls.MAX_LENGTH} characters"

        return True, ""


def validate_email_format(email: str) -> Tuple[bool, str]:
    """
    Additional email validation beyond Pydantic EmailStr.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email:
        return False, "Email is required"

    if len(email) > 320:
        return False, "Email address is too long"

    if email.count("@") != 1:
        return False, "Email must contain exactly one @ symbol"

    local_part, domain = email.rsplit("@", 1)

    if not local_part:
        return False, "Email local part cannot be empty"

    if len(local_part) > 64:
        return False, "Email local part is too long"

    if not domain:
        return False, "Email domain cannot be empty"

    if ".." in email:
        return False, "Email cannot contain consecutive dots"

    if domain.startswith(".") or domain.endswith("."):
        return False, "Email domain cannot start or end with a dot"

    return True, ""


def sanitize_full_name(full_name: str) -> str:
    """
    Strip markup characters and surrounding whitespace from a name.

    Args:
        full_name: User's full name

    Returns:
        Sanitized full name, at most 255 characters
    """
    if not full_name:
        return ""

    sanitized = re.sub(r"[<>\"\'&]", "", full_name.strip())
    sanitized = re.sub(r"\s+", " ", sanitized)

    return sanitized[:255]


def parse_specialties(raw: str) -> List[str]:
    """
    Split a comma-separated specialty list.

    Blank entries are dropped and duplicates removed case-insensitively,
    keeping the first spelling.

    Example:
        >>> parse_specialties("Yoga, Weight Training,, yoga")
        ['Yoga', 'Weight Training']
    """
    specialties: List[str] = []
    seen = set()
    for item in raw.split(","):
        name = item.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        specialties.append(name)
    return specialties


def validate_session_times(start_time: time, end_time: time) -> Tuple[bool, str]:
    """Check that a session ends after it starts."""
    if end_time <= start_time:
        return False, "End time must be after start time"
    return True, ""
