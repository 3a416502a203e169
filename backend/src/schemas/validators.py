"""
Shared validation functions for Pydantic schemas.

Used by the note create/update schemas so both paths normalize titles and
keywords identically.
"""
import re
from typing import Any

from core.config import get_settings

# Usernames: letters, digits, and . _ - (stored lower-cased)
USERNAME_PATTERN = re.compile(r"^[a-z0-9._-]+$")


def normalize_title(title: str) -> str:
    """
    Trim and validate a note title.

    Raises:
        ValueError: If the title is empty or longer than MAX_TITLE_LENGTH.
    """
    normalized = title.strip()
    if not normalized:
        raise ValueError("Title cannot be empty")
    max_length = get_settings().max_title_length
    if len(normalized) > max_length:
        raise ValueError(f"Title exceeds maximum length of {max_length} characters")
    return normalized


def normalize_keywords(keywords: list[Any]) -> list[str]:
    """
    Normalize a list of keywords.

    Args:
        keywords: Raw keyword values from the client.

    Returns:
        Trimmed keywords with empty strings and non-strings dropped and
        duplicates removed (preserving first occurrence order).
    """
    normalized = []
    seen: set[str] = set()
    for keyword in keywords:
        if not isinstance(keyword, str):
            continue
        trimmed = keyword.strip()
        if not trimmed or trimmed in seen:
            continue  # Skip empty and repeated keywords silently
        seen.add(trimmed)
        normalized.append(trimmed)
    return normalized


def normalize_username(username: str) -> str:
    """
    Trim and lower-case a username.

    Raises:
        ValueError: If the username is empty or uses unsupported characters.
    """
    normalized = username.strip().lower()
    if not normalized:
        raise ValueError("Username cannot be empty")
    if not USERNAME_PATTERN.match(normalized):
        raise ValueError(
            "Invalid username: use letters, numbers, '.', '_' or '-' only.",
        )
    return normalized
