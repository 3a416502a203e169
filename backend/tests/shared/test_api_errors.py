"""Tests for shared API error parsing."""

from typing import Any
from unittest.mock import MagicMock

from shared.api_errors import parse_http_error


_RAISE_VALUE_ERROR = object()  # Sentinel to indicate json() should raise


def _make_http_error(status_code: int, json_body: Any = _RAISE_VALUE_ERROR) -> MagicMock:
    """Create a mock HTTPStatusError for testing."""
    mock_response = MagicMock()
    mock_response.status_code = status_code
    if json_body is _RAISE_VALUE_ERROR:
        mock_response.json.side_effect = ValueError("No JSON")
    else:
        mock_response.json.return_value = json_body

    mock_error = MagicMock()
    mock_error.response = mock_response
    return mock_error


class TestParseHttpError:
    """Tests for parse_http_error function."""

    def test__parse_http_error__401_returns_auth_category(self) -> None:
        result = parse_http_error(_make_http_error(401, {"detail": "Token has expired"}))
        assert result.category == "auth"
        assert result.details is None

    def test__parse_http_error__423_carries_lock_holder(self) -> None:
        detail = {
            "error": "lock_held",
            "message": "alice is currently editing this note",
            "lock_user_id": 1,
            "lock_username": "alice",
            "lock_expires_at": "2025-01-01T12:05:00+00:00",
        }
        result = parse_http_error(_make_http_error(423, {"detail": detail}))

        assert result.category == "lock_held"
        assert result.message == "alice is currently editing this note"
        assert result.details["lock_username"] == "alice"

    def test__parse_http_error__403_not_lock_holder(self) -> None:
        detail = {"error": "not_lock_holder", "message": "You do not hold the lock on this note"}
        result = parse_http_error(_make_http_error(403, {"detail": detail}))
        assert result.category == "not_lock_holder"
        assert result.message == "You do not hold the lock on this note"

    def test__parse_http_error__403_other_is_forbidden(self) -> None:
        result = parse_http_error(_make_http_error(403, {"detail": "nope"}))
        assert result.category == "forbidden"

    def test__parse_http_error__404_uses_detail_string(self) -> None:
        result = parse_http_error(_make_http_error(404, {"detail": "Note not found"}))
        assert result.category == "not_found"
        assert result.message == "Note not found"

    def test__parse_http_error__409_invalid_move(self) -> None:
        detail = {"error": "invalid_move", "message": "A note cannot be its own parent"}
        result = parse_http_error(_make_http_error(409, {"detail": detail}))
        assert result.category == "invalid_move"
        assert result.message == "A note cannot be its own parent"

    def test__parse_http_error__409_corrupt_hierarchy(self) -> None:
        detail = {"error": "corrupt_hierarchy", "message": "corrupt", "note_id": 7}
        result = parse_http_error(_make_http_error(409, {"detail": detail}))
        assert result.category == "corrupt_hierarchy"
        assert result.details["note_id"] == 7

    def test__parse_http_error__409_plain_is_conflict(self) -> None:
        result = parse_http_error(_make_http_error(409, {"detail": "Username already exists"}))
        assert result.category == "conflict"
        assert result.message == "Username already exists"

    def test__parse_http_error__422_lists_fields(self) -> None:
        body = {"detail": [
            {"loc": ["body", "title"], "msg": "Title cannot be empty"},
            {"loc": ["body", "parent_id"], "msg": "not an int"},
        ]}
        result = parse_http_error(_make_http_error(422, body))
        assert result.category == "validation"
        assert result.message == "title: Title cannot be empty; parent_id: not an int"

    def test__parse_http_error__non_json_body(self) -> None:
        result = parse_http_error(_make_http_error(423))
        assert result.category == "lock_held"
        assert result.message == "Note is being edited by another user"

    def test__parse_http_error__500_is_internal(self) -> None:
        result = parse_http_error(_make_http_error(500, {"detail": "boom"}))
        assert result.category == "internal"
        assert result.message == "API error 500"
