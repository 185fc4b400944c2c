"""Shared async HTTP client for all upstream providers."""

import httpx

from src.config import settings


def create_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Return an ``AsyncClient`` with the configured per-call timeout."""
    return httpx.AsyncClient(
        timeout=settings.http_timeout_seconds if timeout is None else timeout,
        headers={"Accept": "application/json"},
    )
