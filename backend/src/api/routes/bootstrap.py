"""Initial API key endpoint.

Usable only while no key exists, so a fresh deployment can obtain its first
credential without one.
"""

import hmac

from fastapi import APIRouter, Header, status

from src.api.deps import ApiKeyServiceDep
from src.core.config import get_settings
from src.core.errors import ForbiddenError, NotFoundError
from src.schemas.api_key import ApiKeyResponse, BootstrapApiKeyRequest
from src.schemas.errors import ErrorResponse

router = APIRouter()


@router.post(
    "/init-key",
    response_model=ApiKeyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create the initial API key (bootstrap only)",
    description="Creates the first API key. Only allowed when no API keys exist.",
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def create_initial_key(
    body: BootstrapApiKeyRequest,
    service: ApiKeyServiceDep,
    x_bootstrap_token: str | None = Header(default=None, alias="X-Bootstrap-Token"),
) -> ApiKeyResponse:
    """Create the initial key for ``user_id``.

    Raises:
        NotFoundError: 404 if bootstrap is disabled
        ForbiddenError: 403 if a bootstrap token is configured and does not
            match, or if any key already exists
    """
    settings = get_settings()
    if not settings.bootstrap_enabled:
        raise NotFoundError("Not found")

    if settings.bootstrap_token:
        if not x_bootstrap_token or not hmac.compare_digest(
            x_bootstrap_token, settings.bootstrap_token
        ):
            raise ForbiddenError("Invalid bootstrap token")

    record = await service.bootstrap_create(
        name=body.name,
        user_id=body.user_id,
        expires_in_days=body.expires_in_days,
    )
    return ApiKeyResponse.model_validate(record)
