"""
Substring search across note titles, search text and keywords.

Matching is a case-insensitive ILIKE over precomputed columns, so query cost
does not depend on the size of the block content. Results are newest-first
and carry a highlighted snippet built from content_text.
"""
import html
import json
import re
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import Text, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.config import get_settings
from models.note import Note
from services.content_indexer import normalize_whitespace
from services.utils import clamp_page, contains_pattern

MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"
ELLIPSIS = "…"


@dataclass
class SearchHit:
    """One search result with the fields that matched and a display snippet."""

    id: int
    parent_id: int | None
    title: str
    keywords: list[str]
    updated_at: datetime
    owner_username: str | None
    match_fields: list[str] = field(default_factory=list)
    snippet: str = ""


def _search(text: str, query: str) -> re.Match[str] | None:
    """Case-insensitive literal search; match offsets index into text itself."""
    return re.search(re.escape(query), text, re.IGNORECASE)


def make_snippet(text: str, query: str, width: int) -> str:
    """
    Cut a window of roughly `width` characters around the first match of query.

    The window is centred on the match and gets an ellipsis on each truncated
    side. The match is wrapped in <mark>...</mark>; everything else is
    HTML-escaped so the markers are unambiguous. When the query does not occur,
    returns an unmarked truncation of the text.
    """
    if not text:
        return ""
    found = _search(text, query) if query else None
    if found is None:
        if len(text) <= width:
            return html.escape(text)
        return html.escape(text[:width].rstrip()) + ELLIPSIS

    index, match_end = found.span()
    spare = max(width - (match_end - index), 0)
    start = max(index - spare // 2, 0)
    end = min(max(start + width, match_end), len(text))
    start = max(min(start, end - width), 0)
    start = min(start, index)

    before = text[start:index]
    matched = text[index:match_end]
    after = text[match_end:end]
    snippet = (
        html.escape(before) + MARK_OPEN + html.escape(matched) + MARK_CLOSE + html.escape(after)
    )
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(text):
        snippet = snippet + ELLIPSIS
    return snippet


def _keywords_text(keywords: list[str]) -> str:
    # Same shape as PostgreSQL's jsonb::text output
    return json.dumps(keywords, ensure_ascii=False)


def _content_part(content_text: str, keywords: list[str]) -> str:
    """Strip the appended keyword suffix from content_text."""
    suffix = normalize_whitespace(" ".join(keywords))
    if suffix and content_text.endswith(suffix):
        return content_text[: len(content_text) - len(suffix)].rstrip()
    return content_text


def match_fields(note: Note, query: str) -> list[str]:
    """
    Report which of title, keywords and content contain the query.

    content is only reported for matches in the content-derived part of
    content_text, so a keyword hit is not double-counted as a content hit.
    """
    fields: list[str] = []
    if _search(note.title, query):
        fields.append("title")
    keywords = note.keywords or []
    if any(_search(keyword, query) for keyword in keywords) or (
        _search(_keywords_text(keywords), query)
    ):
        fields.append("keywords")
    content_text = note.content_text or ""
    if _search(_content_part(content_text, keywords), query) or (
        _search(content_text, query) and "keywords" not in fields
    ):
        fields.append("content")
    return fields


async def search_notes(
    db: AsyncSession,
    query: str | None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[SearchHit], int]:
    """
    Search notes by case-insensitive substring.

    Args:
        db: Database session.
        query: Text to look for. Blank queries return no results.
        limit: Page size, clamped to [1, SEARCH_MAX_LIMIT].
        offset: Page offset, negative values treated as 0.

    Returns:
        Tuple of (hits, total matching notes).
    """
    # Whitespace-only queries are blank; otherwise the query is matched as sent
    if query is None or not query.strip():
        return [], 0
    settings = get_settings()
    limit, offset = clamp_page(limit, offset, settings.search_max_limit)

    pattern = contains_pattern(query)
    condition = or_(
        Note.title.ilike(pattern),
        Note.content_text.ilike(pattern),
        cast(Note.keywords, Text).ilike(pattern),
    )

    total = await db.scalar(select(func.count()).select_from(Note).where(condition))

    result = await db.execute(
        select(Note)
        .options(selectinload(Note.owner))
        .where(condition)
        .order_by(Note.updated_at.desc(), Note.id.desc())
        .offset(offset)
        .limit(limit),
    )
    hits = []
    for note in result.scalars():
        text = note.content_text or note.title
        hits.append(
            SearchHit(
                id=note.id,
                parent_id=note.parent_id,
                title=note.title,
                keywords=list(note.keywords or []),
                updated_at=note.updated_at,
                owner_username=note.owner_username,
                match_fields=match_fields(note, query),
                snippet=make_snippet(text, query, settings.search_snippet_length),
            ),
        )
    return hits, total or 0
