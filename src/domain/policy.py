"""
Credential policy - Pure predicates over user-supplied strings.

All patterns are compiled once at import time and never mutated,
so the predicates are safe to call concurrently without locking.
Every predicate is total: non-string input yields False.
"""

import re

PASSWORD_SYMBOLS = "!@#$%^&*"

_IDENTIFIER_PATTERN = re.compile(r"[a-z][a-z0-9_]*")
_WHITESPACE_PATTERN = re.compile(r"\s")
_PASSWORD_PATTERN = re.compile(
    r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[!@#$%^&*])[A-Za-z\d!@#$%^&*]{8,}",
    re.ASCII,
)
_EMAIL_PATTERN = re.compile(r"\w+(\.\w+)*@\w+(\.\w+)+", re.ASCII)


def identifier_valid(value: str) -> bool:
    """True iff value starts with a lowercase letter followed by [a-z0-9_]."""
    if not isinstance(value, str):
        return False
    return _IDENTIFIER_PATTERN.fullmatch(value) is not None


def contains_whitespace(value: str) -> bool:
    if not isinstance(value, str):
        return False
    return _WHITESPACE_PATTERN.search(value) is not None


def password_strong(value: str) -> bool:
    """
    Check password strength.

    Requires at least 8 characters with one lowercase letter, one uppercase
    letter, one digit and one symbol from PASSWORD_SYMBOLS. Any character
    outside letters, digits and PASSWORD_SYMBOLS makes the password invalid.
    """
    if not isinstance(value, str):
        return False
    return _PASSWORD_PATTERN.fullmatch(value) is not None


def email_valid(value: str) -> bool:
    """True iff value looks like local.part@domain.tld (at least one dot after @)."""
    if not isinstance(value, str):
        return False
    return _EMAIL_PATTERN.fullmatch(value) is not None
