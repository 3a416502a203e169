"""Test fixtures for the edit session client."""
from collections.abc import AsyncGenerator, Generator
from typing import Any

import httpx
import pytest
import respx

BASE_URL = "http://localhost:8000"


@pytest.fixture
def mock_api() -> Generator[respx.MockRouter]:
    """Context manager for mocking API responses."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient]:
    """HTTP client pointed at the mocked API."""
    async with httpx.AsyncClient(base_url=BASE_URL) as client:
        yield client


@pytest.fixture
def lock_body() -> dict[str, Any]:
    """Lock response for note 1 held by alice."""
    return {
        "note_id": 1,
        "lock_user_id": 1,
        "lock_username": "alice",
        "lock_expires_at": "2025-01-01T12:05:00Z",
    }


@pytest.fixture
def lock_held_body() -> dict[str, Any]:
    """423 body for note 1 held by bob."""
    return {
        "detail": {
            "error": "lock_held",
            "message": "bob is currently editing this note",
            "lock_user_id": 2,
            "lock_username": "bob",
            "lock_expires_at": "2025-01-01T12:05:00Z",
        },
    }
