"""
Shared API error parsing for API clients.

Maps HTTP errors from the notes API to semantic categories so callers can
react to lock conflicts and move rejections without inspecting status codes.
"""

from dataclasses import dataclass
from typing import Any, Literal

import httpx

ErrorCategory = Literal[
    "auth",               # 401 - Invalid or expired token
    "not_lock_holder",    # 403 - Releasing a lock held by nobody or someone else
    "forbidden",          # 403 - Other access denials
    "not_found",          # 404 - Note not found
    "invalid_move",       # 409 invalid_move - Rejected re-parenting
    "corrupt_hierarchy",  # 409 corrupt_hierarchy - Stored tree contains a cycle
    "conflict",           # 409 - Other conflicts (e.g. username taken)
    "lock_held",          # 423 - Another user is editing
    "validation",         # 400/422 - Validation error
    "internal",           # 5xx or unexpected errors
]


@dataclass
class ParsedApiError:
    """Parsed API error with semantic category and message."""

    category: ErrorCategory
    message: str
    details: dict[str, Any] | None = None


def parse_http_error(e: httpx.HTTPStatusError) -> ParsedApiError:  # noqa: PLR0911
    """
    Parse HTTP error into semantic categories.

    Args:
        e: The HTTP status error from httpx

    Returns:
        ParsedApiError with category, message, and the structured detail body
        when the API sent one (e.g. lock holder for lock_held).
    """
    status = e.response.status_code
    detail = _safe_get_detail(e)
    structured = detail if isinstance(detail, dict) else None
    code = structured.get("error") if structured else None

    if status == 401:
        return ParsedApiError("auth", "Invalid or expired token")

    if status == 403:
        if code == "not_lock_holder":
            return ParsedApiError("not_lock_holder", _message(detail, "You do not hold the lock"))
        return ParsedApiError("forbidden", "Access denied")

    if status == 404:
        return ParsedApiError("not_found", _message(detail, "Not found"))

    if status == 409:
        if code == "invalid_move":
            return ParsedApiError("invalid_move", _message(detail, "Invalid move"), structured)
        if code == "corrupt_hierarchy":
            return ParsedApiError(
                "corrupt_hierarchy", _message(detail, "Note hierarchy is corrupt"), structured,
            )
        return ParsedApiError("conflict", _message(detail, "Conflict"))

    if status == 423:
        return ParsedApiError(
            "lock_held", _message(detail, "Note is being edited by another user"), structured,
        )

    if status in (400, 422):
        return ParsedApiError("validation", _extract_validation_message(detail))

    # Generic error for other status codes
    return ParsedApiError("internal", f"API error {status}")


def _message(detail: dict[str, Any] | str, default: str) -> str:
    if isinstance(detail, dict):
        return detail.get("message") or default
    if isinstance(detail, str) and detail:
        return detail
    return default


def _safe_get_detail(e: httpx.HTTPStatusError) -> dict[str, Any] | str:
    """Safely extract detail from error response."""
    try:
        body = e.response.json()
        if isinstance(body, dict):
            return body.get("detail", {})
        # Non-dict JSON body (list, string, etc.) - return empty
        return {}
    except ValueError:
        return {}


def _extract_validation_message(detail: Any) -> str:
    """Extract validation error message from a 400/422 detail."""
    if isinstance(detail, dict):
        return detail.get("message", str(detail)) if detail else "Validation error"
    if isinstance(detail, list):
        # FastAPI validation errors return a list of error objects
        messages = []
        for err in detail:
            if isinstance(err, dict):
                loc = err.get("loc", ["unknown"])
                field = loc[-1] if loc else "unknown"
                msg = err.get("msg", "invalid")
                messages.append(f"{field}: {msg}")
        return "; ".join(messages) if messages else "Validation error"
    if isinstance(detail, str) and detail:
        return detail
    return "Validation error"
