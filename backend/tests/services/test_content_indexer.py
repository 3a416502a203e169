"""Tests for flattening block content into the search projection."""
from services.content_indexer import (
    build_content_text,
    filename_from_url,
    flatten_content,
    normalize_whitespace,
    strip_html,
)


def _doc(*blocks: dict) -> dict:
    return {"time": 1700000000000, "blocks": list(blocks)}


class TestStripHtml:
    """Tests for strip_html."""

    def test__strip_html__plain_text_unchanged(self) -> None:
        assert strip_html("just text") == "just text"

    def test__strip_html__removes_tags(self) -> None:
        assert strip_html("<b>bold</b> and <i>italic</i>") == "bold and italic"

    def test__strip_html__decodes_entities(self) -> None:
        assert strip_html("Tom &amp; Jerry &lt;3") == "Tom & Jerry <3"

    def test__strip_html__br_becomes_space(self) -> None:
        assert normalize_whitespace(strip_html("line one<br>line two")) == "line one line two"

    def test__strip_html__adjacent_blocks_stay_separate(self) -> None:
        assert normalize_whitespace(strip_html("<p>one</p><p>two</p>")) == "one two"
        assert normalize_whitespace(strip_html("<li>a</li><li>b</li>")) == "a b"

    def test__strip_html__inline_tags_do_not_split_words(self) -> None:
        assert strip_html("foo<b>bar</b>") == "foobar"


class TestFilenameFromUrl:
    """Tests for filename_from_url."""

    def test__filename_from_url__last_segment(self) -> None:
        assert filename_from_url("https://files.example.com/a/b/report.pdf") == "report.pdf"

    def test__filename_from_url__percent_decoded(self) -> None:
        assert filename_from_url("https://x.test/files/my%20photo.png?v=2") == "my photo.png"

    def test__filename_from_url__non_string(self) -> None:
        assert filename_from_url(None) == ""
        assert filename_from_url(42) == ""


class TestFlattenContent:
    """Tests for flatten_content."""

    def test__flatten_content__paragraph_and_header(self) -> None:
        content = _doc(
            {"type": "header", "data": {"text": "Hello", "level": 2}},
            {"type": "paragraph", "data": {"text": "World <b>foo</b>"}},
        )
        assert flatten_content(content) == "Hello World foo"

    def test__flatten_content__nested_list(self) -> None:
        content = _doc({
            "type": "list",
            "data": {
                "style": "unordered",
                "items": [
                    {"content": "one", "items": [{"content": "one-a", "items": []}]},
                    {"content": "two", "items": []},
                ],
            },
        })
        assert flatten_content(content) == "one one-a two"

    def test__flatten_content__flat_string_list(self) -> None:
        content = _doc({"type": "list", "data": {"items": ["alpha", "beta"]}})
        assert flatten_content(content) == "alpha beta"

    def test__flatten_content__checklist(self) -> None:
        content = _doc({
            "type": "checklist",
            "data": {"items": [{"text": "buy milk", "checked": True}, {"text": "call bob"}]},
        })
        assert flatten_content(content) == "buy milk call bob"

    def test__flatten_content__image_caption_and_filename(self) -> None:
        content = _doc({
            "type": "image",
            "data": {"caption": "Team photo", "file": {"url": "https://cdn.test/img/team.jpg"}},
        })
        assert flatten_content(content) == "Team photo team.jpg"

    def test__flatten_content__code_is_literal(self) -> None:
        content = _doc({"type": "code", "data": {"code": "<div>x</div>"}})
        assert flatten_content(content) == "<div>x</div>"

    def test__flatten_content__attachment(self) -> None:
        content = _doc({
            "type": "attaches",
            "data": {"file": {"url": "https://cdn.test/f/budget.xlsx", "name": "Budget"}},
        })
        assert flatten_content(content) == "Budget budget.xlsx"

    def test__flatten_content__table(self) -> None:
        content = _doc({"type": "table", "data": {"content": [["a", "b"], ["c", "<i>d</i>"]]}})
        assert flatten_content(content) == "a b c d"

    def test__flatten_content__unknown_block_uses_common_fields(self) -> None:
        content = _doc({"type": "mystery", "data": {"title": "T", "text": "body", "other": "x"}})
        assert flatten_content(content) == "T body"

    def test__flatten_content__unknown_block_without_text_contributes_nothing(self) -> None:
        content = _doc(
            {"type": "delimiter", "data": {}},
            {"type": "paragraph", "data": {"text": "after"}},
        )
        assert flatten_content(content) == "after"

    def test__flatten_content__malformed_input(self) -> None:
        assert flatten_content(None) == ""
        assert flatten_content({}) == ""
        assert flatten_content({"blocks": "nope"}) == ""
        assert flatten_content(_doc("not a block", {"type": "paragraph"})) == ""


class TestBuildContentText:
    """Tests for build_content_text."""

    def test__build_content_text__content_then_keywords(self) -> None:
        content = _doc(
            {"type": "paragraph", "data": {"text": "Hello   World"}},
            {"type": "paragraph", "data": {"text": "foo\nbar"}},
        )
        assert build_content_text(content, ["tag1"]) == "Hello World foo bar tag1"

    def test__build_content_text__keywords_only(self) -> None:
        assert build_content_text({}, ["a", "b"]) == "a b"

    def test__build_content_text__empty(self) -> None:
        assert build_content_text({}, None) == ""
