"""API key management endpoints (authenticated by API key)."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from src.api.deps import ApiKeyServiceDep, PrincipalDep
from src.models.base import MAX_INTEGER_ID
from src.schemas.api_key import (
    ApiKeyListResponse,
    ApiKeyResponse,
    CreateApiKeyRequest,
    DeleteApiKeyResponse,
    UpdateApiKeyRequest,
)
from src.schemas.errors import ErrorResponse
from src.services.api_key_service import ApiKeyUpdate

# Out-of-range ids are rejected as 400 before reaching the database
KeyId = Annotated[int, Path(ge=1, le=MAX_INTEGER_ID)]

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
    }
)


@router.post(
    "",
    response_model=ApiKeyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an API key for the caller",
)
async def create_api_key(
    body: CreateApiKeyRequest,
    principal: PrincipalDep,
    service: ApiKeyServiceDep,
) -> ApiKeyResponse:
    """Create a key owned by the authenticated caller."""
    record = await service.create(
        name=body.name,
        user_id=principal.owner_id,
        expires_in_days=body.expires_in_days,
    )
    return ApiKeyResponse.model_validate(record)


@router.get(
    "",
    response_model=ApiKeyListResponse,
    summary="List the caller's API keys",
)
async def list_api_keys(
    principal: PrincipalDep,
    service: ApiKeyServiceDep,
) -> ApiKeyListResponse:
    records = await service.list_for_owner(principal.owner_id)
    items = [ApiKeyResponse.model_validate(r) for r in records]
    return ApiKeyListResponse(items=items, total=len(items))


@router.get(
    "/{key_id}",
    response_model=ApiKeyResponse,
    summary="Get one of the caller's API keys",
    responses={404: {"model": ErrorResponse}},
)
async def get_api_key(
    key_id: KeyId,
    principal: PrincipalDep,
    service: ApiKeyServiceDep,
) -> ApiKeyResponse:
    """Keys owned by someone else are reported as 404."""
    record = await service.get_for_owner(key_id, principal.owner_id)
    return ApiKeyResponse.model_validate(record)


@router.put(
    "/{key_id}",
    response_model=ApiKeyResponse,
    summary="Update or renew one of the caller's API keys",
    responses={404: {"model": ErrorResponse}},
)
async def update_api_key(
    key_id: KeyId,
    body: UpdateApiKeyRequest,
    principal: PrincipalDep,
    service: ApiKeyServiceDep,
) -> ApiKeyResponse:
    """Rename, enable/disable or renew a key.

    ``active`` must always be sent. A new ``expires_in_days`` resets the
    expiry relative to now; omitting it keeps the current expiry.
    """
    record = await service.update(
        key_id,
        principal.owner_id,
        ApiKeyUpdate(
            active=body.active,
            name=body.name,
            expires_in_days=body.expires_in_days,
        ),
    )
    return ApiKeyResponse.model_validate(record)


@router.delete(
    "/{key_id}",
    response_model=DeleteApiKeyResponse,
    summary="Delete one of the caller's API keys",
    responses={404: {"model": ErrorResponse}},
)
async def delete_api_key(
    key_id: KeyId,
    principal: PrincipalDep,
    service: ApiKeyServiceDep,
) -> DeleteApiKeyResponse:
    """Hard delete. A second delete of the same id returns 404."""
    await service.delete(key_id, principal.owner_id)
    return DeleteApiKeyResponse(message="API key deleted", id=key_id)
