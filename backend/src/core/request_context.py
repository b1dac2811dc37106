"""Request context utilities.

Carries the correlation ID of the request being served so log lines emitted
deep inside services can be tied back to it.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from uuid import uuid4

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

MAX_REQUEST_ID_LENGTH = 128


def get_request_id() -> str | None:
    return _request_id_var.get()


def set_request_id(request_id: str | None) -> Token[str | None]:
    return _request_id_var.set(request_id)


def reset_request_id(token: Token[str | None]) -> None:
    _request_id_var.reset(token)


def new_request_id() -> str:
    return str(uuid4())


def sanitize_request_id(candidate: str | None) -> str | None:
    """Accept a client-supplied ID only if it is short and single-line."""
    if not candidate:
        return None
    candidate = candidate.strip()
    if not candidate or len(candidate) > MAX_REQUEST_ID_LENGTH:
        return None
    if "\n" in candidate or "\r" in candidate:
        return None
    return candidate


@contextmanager
def request_id_context(request_id: str | None):
    """Set the correlation ID for the duration of the block."""

    token = set_request_id(request_id)
    try:
        yield
    finally:
        reset_request_id(token)
