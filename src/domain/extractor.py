"""
Registration extractor - Untyped document to validated request.

Applies the credential policy to a decoded JSON document in a fixed
order. The first failing check decides the outcome and no later check
runs. The only store access is the read-only existence probe.
"""

import hashlib
import math
from dataclasses import dataclass
from typing import Any

from .executor import USERS_TABLE, QueryExecutor
from .outcomes import (
    QueryFailure,
    RegistrationRequest,
    Rejected,
    RejectionReason,
    Valid,
    ValidationOutcome,
)
from .policy import contains_whitespace, email_valid, identifier_valid, password_strong


class _MissingField(Exception):
    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path


def hash_password(password: str) -> str:
    """SHA-256 hex digest of the UTF-8 encoded password (64 characters)."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class _UnstorableValue(Exception):
    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path


def _storable(value: Any, path: str) -> Any:
    """Return value itself if it is a scalar PostgreSQL can store, else raise."""
    if isinstance(value, str) and "\x00" in value:
        raise _UnstorableValue(path)
    if isinstance(value, float) and not math.isfinite(value):
        raise _UnstorableValue(path)
    if isinstance(value, dict):
        return {}
    if isinstance(value, list):
        return []
    return value


def _storable_copy(value: Any, path: str) -> Any:
    """
    Deep copy a decoded JSON value, refusing what the store cannot hold.

    Text columns and JSONB reject NUL characters, and JSONB has no NaN or
    Infinity. Walks with an explicit stack, so nesting depth is bounded
    only by memory.

    Raises:
        _UnstorableValue: With the path of an offending value
    """
    result = _storable(value, path)
    pending = [(value, result, path)]
    while pending:
        source, target, source_path = pending.pop()
        if isinstance(source, dict):
            for key, item in source.items():
                if isinstance(key, str) and "\x00" in key:
                    raise _UnstorableValue(source_path)
                item_path = f"{source_path}.{key}"
                target[key] = _storable(item, item_path)
                pending.append((item, target[key], item_path))
        elif isinstance(source, list):
            for index, item in enumerate(source):
                item_path = f"{source_path}[{index}]"
                target.append(_storable(item, item_path))
                pending.append((item, target[-1], item_path))
    return result


def _field(document: Any, path: str, expected: type) -> Any:
    value = document
    for key in path.split("."):
        if not isinstance(value, dict) or key not in value:
            raise _MissingField(path)
        value = value[key]
    if not isinstance(value, expected):
        raise _MissingField(path)
    return value


@dataclass
class RegistrationExtractor:
    """
    Builds a RegistrationRequest from a decoded request body.

    Check order:
    1. username matches the identifier grammar
    2. password is strong
    3. password is hashed and the raw value dropped
    4. role, user_data and user_data.contact.email are present
    5. role and user_data hold only storable values (no NUL, NaN or
       Infinity); user_data is deep-copied
    6. username has no whitespace
    7. username is not already registered
    8. username, password and hash are non-empty
    9. email matches the email grammar
    """

    executor: QueryExecutor

    async def extract(self, document: Any) -> ValidationOutcome | QueryFailure:
        """
        Validate document and return Valid, Rejected, or the probe's QueryFailure.

        Missing or wrong-typed fields yield an INVALID_DATA rejection naming
        the field path; unstorable values yield UNSTORABLE_VALUE. Rejection
        messages never contain the password.
        """
        try:
            return await self._extract(document)
        except _MissingField as e:
            return Rejected(RejectionReason.INVALID_DATA, e.path)
        except _UnstorableValue as e:
            return Rejected(RejectionReason.UNSTORABLE_VALUE, e.path)

    async def _extract(self, document: Any) -> ValidationOutcome | QueryFailure:
        username = _field(document, "username", str)
        if not identifier_valid(username):
            return Rejected(RejectionReason.INVALID_USERNAME)

        password = _field(document, "password", str)
        if not password_strong(password):
            return Rejected(RejectionReason.INVALID_PASSWORD)

        password_hash = hash_password(password)
        password_given = bool(password)
        del password

        role = _field(document, "role", str)
        user_data = _field(document, "user_data", dict)
        email = _field(document, "user_data.contact.email", str)
        role = _storable_copy(role, "role")
        user_data = _storable_copy(user_data, "user_data")

        if contains_whitespace(username):
            return Rejected(RejectionReason.USERNAME_HAS_SPACES)

        exists = await self.executor.exists(USERS_TABLE, "username", username)
        if isinstance(exists, QueryFailure):
            return exists
        if exists:
            return Rejected(RejectionReason.USER_EXISTS)

        if not username or not password_given or not password_hash:
            return Rejected(RejectionReason.EMPTY_CREDENTIALS)

        if not email_valid(email):
            return Rejected(RejectionReason.INVALID_EMAIL)

        return Valid(
            RegistrationRequest(
                username=username,
                password_hash=password_hash,
                role=role,
                user_data=user_data,
            )
        )
