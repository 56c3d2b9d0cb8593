"""Resource service - Generic record retrieval by id."""

import logging
from dataclasses import dataclass

from .executor import QueryExecutor
from .outcomes import QueryFailure
from .responses import PipelineResponse, from_failure, not_found, success

logger = logging.getLogger(__name__)


@dataclass
class ResourceService:
    executor: QueryExecutor

    async def retrieve(self, resource_id: int) -> PipelineResponse:
        """Fetch one record; 404 when no row has the id."""
        result = await self.executor.fetch_resource(resource_id)
        if isinstance(result, QueryFailure):
            logger.error("Resource retrieval failed: %s", result.kind.name)
            return from_failure(result)
        if not result.rows:
            return not_found("Resource not found", f"No resource with id {resource_id}")
        return success("Success", result.rows[0])
