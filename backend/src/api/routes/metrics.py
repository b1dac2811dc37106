"""Prometheus scrape endpoint.

Open in development. In production it is hidden (404) unless ``METRICS_TOKEN``
is configured, and then requires that token as a Bearer token or in
``X-Metrics-Token``.
"""

from __future__ import annotations

import hmac

from fastapi import APIRouter, Header, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.core.config import Settings, get_settings
from src.core.errors import ForbiddenError, NotFoundError
from src.core.security import extract_presented_secret

router = APIRouter()


def _check_scrape_token(settings: Settings, presented: str | None) -> None:
    if settings.environment != "production":
        return
    if not settings.metrics_token:
        raise NotFoundError("Not found")
    if not presented or not hmac.compare_digest(presented, settings.metrics_token):
        raise ForbiddenError("Invalid metrics token")


@router.get("/metrics", include_in_schema=False)
async def scrape_metrics(
    authorization: str | None = Header(default=None),
    x_metrics_token: str | None = Header(default=None, alias="X-Metrics-Token"),
) -> Response:
    presented = extract_presented_secret(None, authorization) or x_metrics_token
    _check_scrape_token(get_settings(), presented)
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
