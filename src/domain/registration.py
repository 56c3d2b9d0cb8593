"""
Registration pipeline - Request validation and execution orchestration.

Flow (each stage returns a value; the first non-success value ends the flow):

    raw body -> JSON parse -> RegistrationExtractor -> QueryExecutor.insert_user
             -> PipelineResponse

Concurrency:
The existence probe and the insert are separate store operations, so two
registrations for the same username can both pass the probe. The users
table enforces uniqueness on username; the losing insert surfaces as a
CONFLICT failure, which is reported as the same "user exists" rejection
the probe would have produced.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from .executor import QueryExecutor
from .extractor import RegistrationExtractor
from .outcomes import FailureKind, QueryFailure, Rejected, RejectionReason
from .responses import PipelineResponse, from_failure, from_rejection, success

logger = logging.getLogger(__name__)


class _UnparsableBody(Exception):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def _refuse_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON number")


def _parse_body(body: bytes | str) -> Any:
    """
    Decode a request body as strict JSON.

    NaN, Infinity and -Infinity literals are refused, as are documents
    nested too deeply to decode.

    Raises:
        _UnparsableBody: With a client-safe description of the problem
    """
    try:
        return json.loads(body, parse_constant=_refuse_constant)
    except json.JSONDecodeError as e:
        raise _UnparsableBody(e.msg) from e
    except UnicodeDecodeError as e:
        raise _UnparsableBody("body is not valid UTF-8") from e
    except RecursionError as e:
        raise _UnparsableBody("document is nested too deeply") from e
    except ValueError as e:
        raise _UnparsableBody(str(e)) from e


@dataclass
class RegistrationPipeline:
    """
    Orchestrates user registration from raw request body to response.

    Never raises for request or store problems: every path produces
    exactly one PipelineResponse.
    """

    extractor: RegistrationExtractor
    executor: QueryExecutor

    @classmethod
    def create(cls, executor: QueryExecutor) -> "RegistrationPipeline":
        return cls(extractor=RegistrationExtractor(executor), executor=executor)

    async def register(self, body: bytes | str) -> PipelineResponse:
        """
        Register a user from a raw JSON request body.

        Returns:
            200/status 0 on success, 400/status -1 for rejected input,
            500 or 503/status -2 when the operation could not be completed
        """
        try:
            document = _parse_body(body)
        except _UnparsableBody as e:
            return from_rejection(Rejected(RejectionReason.INVALID_JSON, e.detail))

        outcome = await self.extractor.extract(document)
        if isinstance(outcome, QueryFailure):
            return self._failed(outcome)
        if isinstance(outcome, Rejected):
            logger.info("Registration rejected: %s", outcome.reason.name)
            return from_rejection(outcome)

        request = outcome.request
        result = await self.executor.insert_user(request)
        if isinstance(result, QueryFailure):
            if result.kind is FailureKind.CONFLICT:
                logger.info("Registration lost insert race for %s", request.username)
                return from_rejection(Rejected(RejectionReason.USER_EXISTS))
            return self._failed(result)

        logger.info("User registered: %s", request.username)
        return success("User created", {"username": request.username})

    def _failed(self, failure: QueryFailure) -> PipelineResponse:
        logger.error("Registration failed: %s", failure.kind.name)
        return from_failure(failure)
