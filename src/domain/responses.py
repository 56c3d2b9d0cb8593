"""
Response mapping - Outcomes to HTTP status and response envelope.

Validation rejections use internal status -1 and system failures -2,
so clients can tell invalid input apart from an operation the service
could not complete.
"""

from dataclasses import dataclass
from typing import Any

from .outcomes import STATUS_FAILURE, STATUS_OK, STATUS_REJECTED, QueryFailure, Rejected

FAILURE_MESSAGE = "Failure"


@dataclass(frozen=True)
class PipelineResponse:
    """HTTP status plus the {status, status_message, response} envelope."""

    http_status: int
    status: int
    status_message: str
    response: str | dict[str, Any]

    def envelope(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "status_message": self.status_message,
            "response": self.response,
        }


def success(status_message: str, payload: str | dict[str, Any]) -> PipelineResponse:
    return PipelineResponse(200, STATUS_OK, status_message, payload)


def from_rejection(rejection: Rejected) -> PipelineResponse:
    return PipelineResponse(
        http_status=rejection.http_status,
        status=rejection.status,
        status_message=rejection.status_message,
        response=rejection.response,
    )


def from_failure(failure: QueryFailure) -> PipelineResponse:
    """Map an execution failure; queue exhaustion is reported as retryable (503)."""
    http_status = 503 if failure.kind.retryable else 500
    return PipelineResponse(http_status, STATUS_FAILURE, FAILURE_MESSAGE, failure.message)


def not_found(status_message: str, response: str) -> PipelineResponse:
    return PipelineResponse(404, STATUS_REJECTED, status_message, response)
