"""
Domain layer - Pure business logic with zero framework imports.

This package contains the request validation and execution pipeline for
user registration and record retrieval. It defines its own port interfaces
for the store and the worker pool, keeping FastAPI, pydantic and psycopg
out of the domain.
"""

from .exceptions import (
    ConstraintViolation,
    PersistenceError,
    PoolClosed,
    QueueFull,
    StoreUnavailable,
    WorkDropped,
    WorkerPoolError,
    WorkTimeout,
)
from .executor import QueryExecutor
from .extractor import RegistrationExtractor
from .outcomes import (
    FailureKind,
    QueryFailure,
    QueryResult,
    RegistrationRequest,
    Rejected,
    RejectionReason,
    Valid,
)
from .ports import Store, WorkSubmitter
from .registration import RegistrationPipeline
from .resources import ResourceService
from .responses import PipelineResponse

__all__ = [
    "ConstraintViolation",
    "FailureKind",
    "PersistenceError",
    "PipelineResponse",
    "PoolClosed",
    "QueryExecutor",
    "QueryFailure",
    "QueryResult",
    "QueueFull",
    "RegistrationExtractor",
    "RegistrationPipeline",
    "RegistrationRequest",
    "Rejected",
    "RejectionReason",
    "ResourceService",
    "Store",
    "StoreUnavailable",
    "Valid",
    "WorkDropped",
    "WorkSubmitter",
    "WorkTimeout",
    "WorkerPoolError",
]
