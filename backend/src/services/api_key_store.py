"""Persistence of API key records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import ConflictError, NotFoundError, ValidationError
from src.models.api_key import ApiKey


class ApiKeyStore:
    """Data access for the ``api_keys`` table.

    The store has no notion of the caller; ownership is enforced by
    ``find_by_id_and_owner`` and must be checked before mutating.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, record: ApiKey) -> ApiKey:
        """Insert a new key.

        Raises:
            ValidationError: If ``name`` is empty or ``user_id`` is missing
            ConflictError: If ``key`` is already taken
        """
        if not record.name or not record.name.strip():
            raise ValidationError("API key name must not be empty")
        if record.user_id is None:
            raise ValidationError("API key owner (user_id) is required")
        if not record.key:
            raise ValidationError("API key secret must be set before insert")

        if await self.secret_exists(record.key):
            raise ConflictError("API key secret already exists")

        self.db.add(record)
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race on the unique index
            await self.db.rollback()
            raise ConflictError("API key secret already exists") from None

        await self.db.refresh(record)
        return record

    async def secret_exists(self, secret: str) -> bool:
        result = await self.db.execute(select(ApiKey.id).where(ApiKey.key == secret))
        return result.first() is not None

    async def find_by_secret(self, secret: str) -> ApiKey:
        result = await self.db.execute(select(ApiKey).where(ApiKey.key == secret))
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError("API key not found")
        return record

    async def find_all_by_owner(self, owner_id: int) -> list[ApiKey]:
        result = await self.db.execute(
            select(ApiKey).where(ApiKey.user_id == owner_id).order_by(ApiKey.id)
        )
        return list(result.scalars().all())

    async def find_by_id(self, key_id: int) -> ApiKey:
        record = await self.db.get(ApiKey, key_id)
        if not record:
            raise NotFoundError("API key not found")
        return record

    async def find_by_id_and_owner(self, key_id: int, owner_id: int) -> ApiKey:
        """Fetch a key owned by ``owner_id``.

        A key owned by someone else is reported exactly like a missing one.
        """
        result = await self.db.execute(
            select(ApiKey).where(ApiKey.id == key_id, ApiKey.user_id == owner_id)
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError("API key not found or not owned by the caller")
        return record

    async def update(
        self,
        key_id: int,
        *,
        active: bool,
        name: str | None = None,
        expires_at: datetime | None = None,
    ) -> ApiKey:
        """Apply a partial update; ``active`` is always written.

        A missing, empty or whitespace-only ``name`` keeps the current name.
        """
        record = await self.find_by_id(key_id)

        if name and name.strip():
            record.name = name
        record.active = active
        if expires_at is not None:
            record.expires_at = expires_at

        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def delete(self, key_id: int) -> None:
        """Hard delete. Deleting an id that no longer exists is an error."""
        result = await self.db.execute(delete(ApiKey).where(ApiKey.id == key_id))
        if result.rowcount == 0:
            raise NotFoundError("API key not found")

    async def count(self) -> int:
        total = await self.db.scalar(select(func.count()).select_from(ApiKey))
        return int(total or 0)
