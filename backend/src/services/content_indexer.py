"""
Flattens structured block content into the plain-text search projection.

A note's content is a block document as produced by the web editor:

    {"time": ..., "blocks": [{"type": "paragraph", "data": {"text": "..."}}, ...]}

Only block ``type`` and ``data`` are read. The projection is stored in
``Note.content_text`` on every save, so search never has to walk content at
query time.
"""
import logging
import re
from collections.abc import Callable, Iterable
from typing import Any
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.note import Note

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

# Elements whose text must not run into the text that follows
_BLOCK_TAGS = [
    "p", "div", "li", "ul", "ol", "h1", "h2", "h3", "h4", "h5", "h6",
    "blockquote", "pre", "table", "tr", "td", "th",
]

# Fields tried for block types the indexer does not know about
_FALLBACK_FIELDS = ("title", "description", "text", "caption")


def normalize_whitespace(value: str) -> str:
    """Collapse runs of whitespace to single spaces and trim."""
    return _WHITESPACE.sub(" ", value).strip()


def strip_html(value: str) -> str:
    """
    Convert an HTML fragment to plain text.

    Tags are removed and entities are decoded. ``<br>`` and block elements
    such as ``<p>`` become spaces; inline tags join their text directly.
    Strings without markup are returned unchanged.
    """
    if "<" not in value and "&" not in value:
        return value
    soup = BeautifulSoup(value, "lxml")
    for br in soup.find_all("br"):
        br.replace_with(" ")
    for block in soup.find_all(_BLOCK_TAGS):
        if block.next_sibling is not None:
            block.insert_after(" ")
    return soup.get_text()


def filename_from_url(url: Any) -> str:
    """Return the last path segment of a URL, percent-decoded ('' if none)."""
    if not isinstance(url, str) or not url:
        return ""
    path = urlparse(url).path
    return unquote(path.rstrip("/").rsplit("/", 1)[-1])


def _text(value: Any) -> str:
    """HTML-stripped text of a string field, '' for anything else."""
    if isinstance(value, str):
        return strip_html(value)
    return ""


def _file_url(data: dict[str, Any]) -> Any:
    file_info = data.get("file")
    if isinstance(file_info, dict):
        return file_info.get("url")
    return data.get("url")


def _list_items(items: Any) -> Iterable[str]:
    """Yield item texts from flat or nested list blocks."""
    if not isinstance(items, list):
        return
    for item in items:
        if isinstance(item, str):
            yield _text(item)
        elif isinstance(item, dict):
            yield _text(item.get("content") or item.get("text"))
            yield from _list_items(item.get("items"))


def _header(data: dict[str, Any]) -> Iterable[str]:
    yield _text(data.get("text"))


def _quote(data: dict[str, Any]) -> Iterable[str]:
    yield _text(data.get("text"))
    yield _text(data.get("caption"))


def _list(data: dict[str, Any]) -> Iterable[str]:
    yield from _list_items(data.get("items"))


def _checklist(data: dict[str, Any]) -> Iterable[str]:
    items = data.get("items")
    if isinstance(items, list):
        for item in items:
            if isinstance(item, dict):
                yield _text(item.get("text"))


def _image(data: dict[str, Any]) -> Iterable[str]:
    yield _text(data.get("caption"))
    yield filename_from_url(_file_url(data))


def _code(data: dict[str, Any]) -> Iterable[str]:
    # Literal text: markup inside code is part of what users search for
    code = data.get("code")
    if isinstance(code, str):
        yield code


def _raw(data: dict[str, Any]) -> Iterable[str]:
    yield _text(data.get("html"))


def _attachment(data: dict[str, Any]) -> Iterable[str]:
    file_info = data.get("file")
    name = file_info.get("name") if isinstance(file_info, dict) else None
    yield _text(name or data.get("title"))
    yield filename_from_url(_file_url(data))


def _table(data: dict[str, Any]) -> Iterable[str]:
    rows = data.get("content")
    if isinstance(rows, list):
        for row in rows:
            if isinstance(row, list):
                for cell in row:
                    yield _text(cell)


def _warning(data: dict[str, Any]) -> Iterable[str]:
    yield _text(data.get("title"))
    yield _text(data.get("message"))


def _link(data: dict[str, Any]) -> Iterable[str]:
    meta = data.get("meta")
    if isinstance(meta, dict):
        yield _text(meta.get("title"))
        yield _text(meta.get("description"))
    yield _text(data.get("caption"))


def _fallback(data: dict[str, Any]) -> Iterable[str]:
    for field in _FALLBACK_FIELDS:
        yield _text(data.get(field))


_EXTRACTORS: dict[str, Callable[[dict[str, Any]], Iterable[str]]] = {
    "header": _header,
    "paragraph": _header,
    "quote": _quote,
    "list": _list,
    "checklist": _checklist,
    "image": _image,
    "simpleImage": _image,
    "code": _code,
    "raw": _raw,
    "attaches": _attachment,
    "attachment": _attachment,
    "table": _table,
    "warning": _warning,
    "linkTool": _link,
    "embed": _link,
}


def flatten_content(content: Any) -> str:
    """
    Extract the human-readable text of a block document.

    Blocks are visited in order. Malformed blocks and blocks without any
    recognizable text contribute nothing rather than failing.
    """
    if not isinstance(content, dict):
        return ""
    blocks = content.get("blocks")
    if not isinstance(blocks, list):
        return ""

    fragments: list[str] = []
    for block in blocks:
        if not isinstance(block, dict):
            continue
        data = block.get("data")
        if not isinstance(data, dict):
            continue
        extractor = _EXTRACTORS.get(block.get("type"), _fallback)
        fragments.extend(fragment for fragment in extractor(data) if fragment)
    return normalize_whitespace(" ".join(fragments))


def build_content_text(content: Any, keywords: Iterable[str] | None) -> str:
    """Build the stored search projection: flattened content followed by keywords."""
    keyword_text = " ".join(keywords or [])
    return normalize_whitespace(f"{flatten_content(content)} {keyword_text}")


async def backfill_content_text(db: AsyncSession) -> int:
    """
    Compute content_text for notes stored without it.

    Run once at startup so notes written before the projection existed become
    searchable without being edited.

    Returns:
        Number of notes updated.
    """
    result = await db.execute(
        select(Note).where(or_(Note.content_text.is_(None), Note.content_text == "")),
    )
    updated = 0
    for note in result.scalars():
        projection = build_content_text(note.content, note.keywords)
        if projection:
            note.content_text = projection
            updated += 1
    await db.flush()
    if updated:
        logger.info("Backfilled content_text for %d notes", updated)
    return updated
