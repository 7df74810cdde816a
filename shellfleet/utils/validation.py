"""Input validation for values that end up on a remote command line."""

import re
from datetime import date, datetime
from typing import Final

USERNAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-z][a-z0-9_-]{2,31}$")


def validate_username(username: str) -> str:
    """Validate a shell account name.

    Lowercase letter first, then 2-31 lowercase letters, digits, ``_`` or ``-``.

    Raises:
        ValueError: If the name does not match
    """
    if not USERNAME_PATTERN.match(username or ""):
        raise ValueError(
            f"Invalid username {username!r}: must match {USERNAME_PATTERN.pattern}"
        )
    return username


def validate_password(password: str) -> str:
    """Reject passwords chpasswd cannot carry on a single input line.

    Raises:
        ValueError: If the password is empty or contains a line break or NUL
    """
    if not password:
        raise ValueError("Password cannot be empty")
    for char in ("\n", "\r", "\x00"):
        if char in password:
            raise ValueError("Password contains invalid characters")
    return password


def format_date(value: date | datetime | str) -> str:
    """Render an expiration date as ``YYYY-MM-DD``.

    Strings are parsed first, so malformed input never reaches ``chage``.

    Raises:
        ValueError: If a string is not an ISO date
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(value.strip()).isoformat()


def validate_port(port: int) -> int:
    """Raises ValueError unless 1 <= port <= 65535."""
    if not 1 <= port <= 65535:
        raise ValueError(f"Invalid port: {port}")
    return port
