"""Pydantic schemas for API key management."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.security import as_utc
from src.models.base import MAX_INTEGER_ID


class CreateApiKeyRequest(BaseModel):
    """Request schema for creating a key owned by the caller."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    expires_in_days: int = Field(..., ge=1, le=36500)


class BootstrapApiKeyRequest(CreateApiKeyRequest):
    """Request schema for creating the very first key (no authentication)."""

    user_id: int = Field(..., ge=1, le=MAX_INTEGER_ID)


class UpdateApiKeyRequest(BaseModel):
    """Partial update of a key.

    ``active`` is mandatory so an omitted field can never silently disable a
    key. An empty or missing ``name`` and a missing ``expires_in_days`` leave
    the stored values unchanged.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, max_length=255)
    active: bool
    expires_in_days: int | None = Field(default=None, ge=1, le=36500)


class ApiKeyResponse(BaseModel):
    """API key as returned to its owner (includes the secret)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    key: str
    name: str
    user_id: int
    expires_at: datetime
    active: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("expires_at", "created_at", "updated_at", mode="after")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class ApiKeyListResponse(BaseModel):
    """Keys owned by the caller."""

    items: list[ApiKeyResponse]
    total: int


class DeleteApiKeyResponse(BaseModel):
    message: str
    id: int
