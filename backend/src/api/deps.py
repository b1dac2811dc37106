"""FastAPI dependencies for API key authentication."""

from typing import Annotated

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.security import extract_presented_secret
from src.services.api_key_service import ApiKeyService, Principal


async def get_api_key_service(db: AsyncSession = Depends(get_db)) -> ApiKeyService:
    return ApiKeyService(db)


async def get_current_principal(
    key: str | None = Query(default=None, description="API key secret"),
    authorization: str | None = Header(default=None),
    service: ApiKeyService = Depends(get_api_key_service),
) -> Principal:
    """Authenticate the request by its API key.

    The ``key`` query parameter is checked first; the ``Authorization:
    Bearer <secret>`` header is used only when the query parameter is empty.

    Returns:
        Principal carrying the caller's owner ID and key record

    Raises:
        UnauthorizedError: 401 if the secret is missing, unknown, expired or disabled
    """
    secret = extract_presented_secret(key, authorization)
    return await service.validate(secret)


ApiKeyServiceDep = Annotated[ApiKeyService, Depends(get_api_key_service)]
PrincipalDep = Annotated[Principal, Depends(get_current_principal)]
