"""HTTP client helpers for calling the notes API."""

import os
from typing import Any

import httpx


def get_api_base_url() -> str:
    """Get the API base URL from environment."""
    return os.getenv("QNOTES_API_URL", "http://localhost:8000")


def get_default_timeout() -> float:
    """Get the default request timeout."""
    return float(os.getenv("QNOTES_API_TIMEOUT", "30.0"))


def create_client() -> httpx.AsyncClient:
    """Create an HTTP client for the configured API. The caller closes it."""
    return httpx.AsyncClient(base_url=get_api_base_url(), timeout=get_default_timeout())


def _get_headers(token: str) -> dict[str, str]:
    """Get common headers for API requests."""
    return {"Authorization": f"Bearer {token}"}


async def api_get(
    client: httpx.AsyncClient,
    path: str,
    token: str,
    params: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Make an authenticated GET request to the API."""
    response = await client.get(
        path,
        params=params,
        headers=_get_headers(token),
    )
    response.raise_for_status()
    return response.json()


async def api_post(
    client: httpx.AsyncClient,
    path: str,
    token: str,
    json: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Make an authenticated POST request to the API."""
    response = await client.post(
        path,
        json=json if json is not None else {},
        headers=_get_headers(token),
    )
    response.raise_for_status()
    return response.json()


async def api_put(
    client: httpx.AsyncClient,
    path: str,
    token: str,
    json: dict[str, Any],
) -> dict[str, Any]:
    """Make an authenticated PUT request to the API."""
    response = await client.put(
        path,
        json=json,
        headers=_get_headers(token),
    )
    response.raise_for_status()
    return response.json()
