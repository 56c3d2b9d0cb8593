"""
Outcome types - Tagged results passed between pipeline stages.

Stages communicate by returning these values rather than raising,
so every failure path is an explicit, inspectable branch:

- ValidationOutcome: Valid(RegistrationRequest) | Rejected(reason)
- QueryOutcome: QueryResult(rows, affected) | QueryFailure(kind)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

STATUS_OK = 0
STATUS_REJECTED = -1
STATUS_FAILURE = -2


class RejectionReason(Enum):
    """
    Fixed catalogue of validation rejections.

    Each value is (status_message, response, internal status, HTTP status).
    """

    INVALID_JSON = (
        "Failed to create a new user, invalid JSON",
        "Error parsing user data",
        STATUS_REJECTED,
        400,
    )
    INVALID_USERNAME = (
        "Failed to create a new user, invalid username",
        "Username should always be in lowercase characters and underscore or numbers only",
        STATUS_REJECTED,
        400,
    )
    INVALID_PASSWORD = (
        "Failed to create a new user, invalid password",
        "Password is weak",
        STATUS_REJECTED,
        400,
    )
    USERNAME_HAS_SPACES = (
        "Failed to create a new user, username contains spaces",
        "Username contains spaces",
        STATUS_REJECTED,
        400,
    )
    USER_EXISTS = (
        "Failed to create a new user, user exists",
        "User already exists",
        STATUS_REJECTED,
        400,
    )
    EMPTY_CREDENTIALS = (
        "Failed to create a new user, invalid data",
        "Empty username or password",
        STATUS_REJECTED,
        400,
    )
    INVALID_EMAIL = (
        "Failed to create a new user, invalid data",
        "Invalid email format",
        STATUS_REJECTED,
        400,
    )
    UNSTORABLE_VALUE = (
        "Failed to create a new user, invalid data",
        "Field holds a value that cannot be stored",
        STATUS_REJECTED,
        400,
    )
    INVALID_DATA = (
        "Failed to create a new user, invalid data",
        "Missing or malformed field",
        STATUS_FAILURE,
        500,
    )

    def __init__(self, status_message: str, response: str, status: int, http_status: int) -> None:
        self.status_message = status_message
        self.response = response
        self.status = status
        self.http_status = http_status


@dataclass(frozen=True)
class RegistrationRequest:
    """
    A fully validated registration.

    password_hash is a SHA-256 hex digest; the raw password is never stored here.

    user_data is a private deep copy made by the extractor, so later
    changes to the decoded document never reach the request. It is
    excluded from hashing.
    """

    username: str
    password_hash: str
    role: str
    user_data: dict[str, Any] = field(hash=False)


@dataclass(frozen=True)
class Valid:
    request: RegistrationRequest


@dataclass(frozen=True)
class Rejected:
    """A validation rejection, optionally with a detail appended to the response text."""

    reason: RejectionReason
    detail: str | None = None

    @property
    def status_message(self) -> str:
        return self.reason.status_message

    @property
    def response(self) -> str:
        if self.detail:
            return f"{self.reason.response}: {self.detail}"
        return self.reason.response

    @property
    def status(self) -> int:
        return self.reason.status

    @property
    def http_status(self) -> int:
        return self.reason.http_status


ValidationOutcome = Valid | Rejected


class FailureKind(Enum):
    """
    Classification of execution failures.

    Values are the sanitized messages surfaced to clients.
    """

    CONFLICT = "The record conflicts with an existing record"
    NO_OP = "The operation did not modify any records"
    TIMEOUT = "The operation timed out before it could run"
    QUEUE_FULL = "The service is busy, please retry later"
    UNAVAILABLE = "The storage backend is unavailable"
    STORE_ERROR = "The storage backend rejected the operation"
    INTERNAL = "An internal error occurred"

    @property
    def retryable(self) -> bool:
        return self is FailureKind.QUEUE_FULL


@dataclass(frozen=True)
class QueryResult:
    rows: list[dict[str, Any]] = field(default_factory=list, hash=False)
    affected: int = 0


@dataclass(frozen=True)
class QueryFailure:
    kind: FailureKind

    @property
    def message(self) -> str:
        return self.kind.value


QueryOutcome = QueryResult | QueryFailure
