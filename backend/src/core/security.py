"""API key lifecycle primitives: secret generation, expiry and validity."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from typing import Protocol

from src.core.config import get_settings
from src.core.errors import ValidationError

# Number of leading secret characters that may appear in logs.
KEY_PREFIX_LENGTH = 8


class SupportsValidity(Protocol):
    active: bool
    expires_at: datetime


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite returns these) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def generate_secret(num_bytes: int | None = None) -> str:
    """Generate an opaque API key secret from the OS CSPRNG.

    Args:
        num_bytes: Entropy in bytes; defaults to ``settings.secret_bytes``
            (16 bytes = 128 bits, 32 hex characters)

    Returns:
        Lowercase hex string of ``2 * num_bytes`` characters
    """
    if num_bytes is None:
        num_bytes = get_settings().secret_bytes
    if num_bytes < 16:
        raise ValueError("API key secrets need at least 128 bits of entropy")
    return secrets.token_hex(num_bytes)


def compute_expiry(days_from_now: int, now: datetime | None = None) -> datetime:
    """Return the absolute expiry ``days_from_now`` days after ``now``.

    Raises:
        ValidationError: If ``days_from_now`` is not a positive integer
    """
    if isinstance(days_from_now, bool) or not isinstance(days_from_now, int):
        raise ValidationError("expires_in_days must be an integer")
    if days_from_now < 1:
        raise ValidationError(
            "expires_in_days must be at least 1",
            details={"expires_in_days": days_from_now},
        )
    base = as_utc(now) if now is not None else utcnow()
    return base + timedelta(days=days_from_now)


def is_valid(record: SupportsValidity, now: datetime | None = None) -> bool:
    """A key is valid iff it is active and ``now`` is strictly before its expiry."""
    if not record.active:
        return False
    current = as_utc(now) if now is not None else utcnow()
    return current < as_utc(record.expires_at)


def key_prefix(secret: str) -> str:
    """Loggable identifier for a secret."""
    return secret[:KEY_PREFIX_LENGTH]


def extract_presented_secret(query_key: str | None, authorization: str | None) -> str | None:
    """Pick the secret a caller presented.

    The ``key`` query parameter wins; the ``Authorization: Bearer <secret>``
    header is only consulted when the query parameter is empty.
    """
    if query_key:
        return query_key

    if authorization:
        parts = authorization.split(" ", 1)
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1].strip()
            if token:
                return token

    return None
