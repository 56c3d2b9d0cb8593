"""
API routes - Registration and retrieval endpoints.

This module defines the HTTP endpoints:
- POST /users - Register a new user
- GET /resource/{resource_id} - Retrieve a stored record

Every response uses the {status, status_message, response} envelope
and mirrors the pipeline's HTTP status on the transport.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from src.api.dependencies import get_registration_pipeline, get_resource_service
from src.api.models import RegisterUserRequest, ResponseEnvelope
from src.domain.registration import RegistrationPipeline
from src.domain.resources import ResourceService
from src.domain.responses import PipelineResponse

router = APIRouter(tags=["users"])

_envelope_responses = {
    400: {"model": ResponseEnvelope, "description": "Rejected input (status -1)"},
    500: {"model": ResponseEnvelope, "description": "System failure (status -2)"},
    503: {"model": ResponseEnvelope, "description": "Service busy, retry later (status -2)"},
}


def _to_response(result: PipelineResponse) -> JSONResponse:
    return JSONResponse(status_code=result.http_status, content=jsonable_encoder(result.envelope()))


@router.post(
    "/users",
    response_model=ResponseEnvelope,
    responses=_envelope_responses,
    summary="Register a new user",
    description="Validate credentials and user data, then create the user. "
    "The password is stored only as a SHA-256 digest.",
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": RegisterUserRequest.model_json_schema()}},
            "required": True,
        }
    },
)
async def create_user(
    request: Request,
    pipeline: RegistrationPipeline = Depends(get_registration_pipeline),
) -> JSONResponse:
    """
    Register a new user.

    - **username**: lowercase identifier, unique
    - **password**: strong password (never stored or echoed)
    - **role**: free-form role name
    - **user_data**: document containing contact.email

    The raw body is handed to the registration pipeline so that malformed
    JSON is reported in the standard envelope.
    """
    body = await request.body()
    return _to_response(await pipeline.register(body))


@router.get(
    "/resource/{resource_id}",
    response_model=ResponseEnvelope,
    responses={404: {"model": ResponseEnvelope, "description": "Resource not found"}, **_envelope_responses},
    summary="Retrieve a resource by id",
    tags=["resources"],
)
async def get_resource(
    resource_id: int,
    service: ResourceService = Depends(get_resource_service),
) -> JSONResponse:
    return _to_response(await service.retrieve(resource_id))
