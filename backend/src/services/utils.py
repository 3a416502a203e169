"""Shared helpers for building note search queries."""


def escape_ilike(value: str) -> str:
    r"""
    Escape special ILIKE characters for safe use in LIKE/ILIKE patterns.

    PostgreSQL LIKE/ILIKE treats these characters specially:
    - % matches any sequence of characters
    - _ matches any single character
    - \\ is the escape character

    This function escapes them so a search for "100%" only matches the literal text.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_pattern(query: str) -> str:
    """ILIKE pattern matching query anywhere in a column."""
    return f"%{escape_ilike(query)}%"


def clamp_page(limit: int, offset: int, max_limit: int) -> tuple[int, int]:
    """Clamp limit to [1, max_limit] and offset to >= 0."""
    return max(1, min(limit, max_limit)), max(0, offset)
