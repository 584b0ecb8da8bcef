"""Tests for core/normalize.py: tool result flattening."""
import json

from mcp.types import ImageContent, TextContent

from core.normalize import normalize_result, preview


class TestNormalizeResult:
    def test_text_items_joined_by_blank_line(self):
        result = [{"type": "text", "text": "A"}, {"type": "text", "text": "B"}]
        assert normalize_result(result) == "A\n\nB"

    def test_non_text_items_skipped(self):
        result = [
            {"type": "image", "data": "aGk=", "mimeType": "image/png"},
            {"type": "text", "text": "caption"},
        ]
        assert normalize_result(result) == "caption"

    def test_no_text_items_falls_back_to_json(self):
        result = [{"type": "image", "data": "aGk=", "mimeType": "image/png"}]
        text = normalize_result(result)
        assert json.loads(text) == result

    def test_mcp_content_objects(self):
        result = [TextContent(type="text", text="A"), TextContent(type="text", text="B")]
        assert normalize_result(result) == "A\n\nB"

    def test_mcp_non_text_objects_serialized(self):
        result = [ImageContent(type="image", data="aGk=", mimeType="image/png")]
        parsed = json.loads(normalize_result(result))
        assert parsed[0]["type"] == "image"
        assert parsed[0]["mimeType"] == "image/png"

    def test_structured_value_round_trips(self):
        result = {"city": "東京", "temp_c": 18.5, "tags": ["rain", None], "ok": True}
        text = normalize_result(result)
        assert json.loads(text) == result
        assert "東京" in text
        assert "\n  " in text  # pretty-printed

    def test_string_passes_through(self):
        assert normalize_result("already text\n") == "already text\n"

    def test_empty_list(self):
        assert normalize_result([]) == "[]"

    def test_number(self):
        assert normalize_result(42) == "42"


class TestPreview:
    def test_short_text_unchanged(self):
        assert preview("x" * 1000) == "x" * 1000

    def test_long_text_keeps_head_and_tail(self):
        text = "H" * 500 + "M" * 600 + "T" * 500
        shortened = preview(text)
        assert "H" * 500 in shortened
        assert "T" * 500 in shortened
        assert "M" not in shortened
        assert "omitted" in shortened
