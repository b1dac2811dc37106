"""API key lifecycle service.

Creation (with secret collision retry), the bootstrap gate, ownership-checked
management operations and secret validation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import get_settings
from src.core.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
)
from src.core.metrics import SECRET_COLLISIONS_TOTAL, observe_auth
from src.core.security import (
    compute_expiry,
    generate_secret,
    is_valid,
    key_prefix,
    utcnow,
)
from src.core.structured_logging import log_json
from src.models.api_key import ApiKey
from src.services.api_key_store import ApiKeyStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Identity resolved from a valid secret."""

    owner_id: int
    api_key: ApiKey


@dataclass(frozen=True)
class ApiKeyUpdate:
    """Update command.

    ``active`` is always applied. ``name=None`` (or empty) keeps the current
    name; ``expires_in_days=None`` keeps the current expiry.
    """

    active: bool
    name: str | None = None
    expires_in_days: int | None = None


class ApiKeyService:
    """Service for issuing and managing API keys."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = ApiKeyStore(db)
        self.settings = get_settings()

    async def create(
        self,
        name: str,
        user_id: int,
        expires_in_days: int,
        secret: str | None = None,
    ) -> ApiKey:
        """Create an active key for ``user_id``.

        Generated secrets are regenerated on collision, up to
        ``secret_max_attempts`` times. An explicitly supplied secret is
        inserted once and a collision is raised to the caller.

        Raises:
            ValidationError: Empty name or non-positive day count
            ConflictError: Supplied ``secret`` already exists
            InternalError: Every generated secret collided
        """
        expires_at = compute_expiry(expires_in_days)

        if secret is not None:
            record = await self.store.create(self._new_record(name, user_id, expires_at, secret))
            self._log_created(record, "api_key.created")
            return record

        attempts = self.settings.secret_max_attempts
        for attempt in range(1, attempts + 1):
            candidate = generate_secret()
            try:
                record = await self.store.create(
                    self._new_record(name, user_id, expires_at, candidate)
                )
            except ConflictError:
                SECRET_COLLISIONS_TOTAL.inc()
                log_json(
                    logger,
                    logging.WARNING,
                    "api_key.secret_collision",
                    attempt=attempt,
                    max_attempts=attempts,
                )
                continue

            self._log_created(record, "api_key.created")
            return record

        raise InternalError("Could not generate a unique API key secret")

    async def bootstrap_create(
        self,
        name: str,
        user_id: int,
        expires_in_days: int,
        secret: str | None = None,
    ) -> ApiKey:
        """Create the first key without authentication.

        The gate is re-derived from the store on every call.

        Raises:
            ForbiddenError: If any key already exists
        """
        existing = await self.store.count()
        if existing > 0:
            log_json(logger, logging.WARNING, "api_key.bootstrap_rejected", existing=existing)
            raise ForbiddenError("API keys already exist; the initial key can no longer be created")

        record = await self.create(
            name=name, user_id=user_id, expires_in_days=expires_in_days, secret=secret
        )
        self._log_created(record, "api_key.bootstrap_created")
        return record

    async def list_for_owner(self, owner_id: int) -> list[ApiKey]:
        return await self.store.find_all_by_owner(owner_id)

    async def get_for_owner(self, key_id: int, owner_id: int) -> ApiKey:
        return await self.store.find_by_id_and_owner(key_id, owner_id)

    async def update(self, key_id: int, owner_id: int, command: ApiKeyUpdate) -> ApiKey:
        """Apply ``command`` to a key owned by ``owner_id``.

        Re-enabling a key does not touch ``expires_at``; pass
        ``expires_in_days`` to renew.
        """
        await self.store.find_by_id_and_owner(key_id, owner_id)

        expires_at = None
        if command.expires_in_days is not None:
            expires_at = compute_expiry(command.expires_in_days)

        record = await self.store.update(
            key_id,
            active=command.active,
            name=command.name,
            expires_at=expires_at,
        )
        log_json(
            logger,
            logging.INFO,
            "api_key.updated",
            key_id=record.id,
            user_id=owner_id,
            active=record.active,
            renewed=expires_at is not None,
        )
        return record

    async def delete(self, key_id: int, owner_id: int) -> None:
        await self.store.find_by_id_and_owner(key_id, owner_id)
        await self.store.delete(key_id)
        log_json(logger, logging.INFO, "api_key.deleted", key_id=key_id, user_id=owner_id)

    async def validate(self, secret: str | None, now: datetime | None = None) -> Principal:
        """Resolve a presented secret to its owner.

        Raises:
            UnauthorizedError: Secret missing, unknown, expired or disabled
        """
        if not secret:
            self._auth_failed("missing")
            raise UnauthorizedError(
                "Missing API key; pass it as the 'key' query parameter or a Bearer token"
            )

        try:
            record = await self.store.find_by_secret(secret)
        except NotFoundError:
            self._auth_failed("unknown", secret)
            raise UnauthorizedError("Invalid API key") from None

        if not is_valid(record, now or utcnow()):
            self._auth_failed("disabled" if not record.active else "expired", secret)
            raise UnauthorizedError("API key is expired or disabled")

        observe_auth("ok")
        return Principal(owner_id=record.user_id, api_key=record)

    @staticmethod
    def _new_record(name: str, user_id: int, expires_at: datetime, secret: str) -> ApiKey:
        return ApiKey(
            key=secret,
            name=name,
            user_id=user_id,
            expires_at=expires_at,
            active=True,
        )

    @staticmethod
    def _log_created(record: ApiKey, event: str) -> None:
        log_json(
            logger,
            logging.INFO,
            event,
            key_id=record.id,
            user_id=record.user_id,
            key_prefix=key_prefix(record.key),
            expires_at=record.expires_at,
        )

    @staticmethod
    def _auth_failed(outcome: str, secret: str | None = None) -> None:
        observe_auth(outcome)
        fields = {"outcome": outcome}
        if secret:
            fields["key_prefix"] = key_prefix(secret)
        log_json(logger, logging.WARNING, "api_key.auth_failed", **fields)
