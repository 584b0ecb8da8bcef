"""Tests for core/parsing.py: the strict selection and tool-call grammar."""
from core.models import InvocationRequest, Selection
from core.parsing import parse_selection, parse_tool_call


class TestParseSelection:
    def test_plain_line(self):
        r = parse_selection("path=/srv/weather/build/index.js, name=get_weather")
        assert r.ok
        assert r.value == Selection("/srv/weather/build/index.js", "get_weather")

    def test_surrounding_whitespace(self):
        r = parse_selection("\n  path=/a/b.py,   name=lookup  \n")
        assert r.value == Selection("/a/b.py", "lookup")

    def test_quoted_values(self):
        r = parse_selection("path='/srv/my tools/index.js', name='search'")
        assert r.value == Selection("/srv/my tools/index.js", "search")

    def test_code_fence_is_ignored(self):
        r = parse_selection("```\npath=/a/b.py, name=lookup\n```")
        assert r.value == Selection("/a/b.py", "lookup")

    def test_path_with_comma(self):
        r = parse_selection("path=/srv/a,b/index.js, name=lookup")
        assert r.value == Selection("/srv/a,b/index.js", "lookup")

    def test_empty_response(self):
        r = parse_selection("   ")
        assert not r.ok
        assert r.value is None

    def test_free_text_rejected(self):
        r = parse_selection("I think the weather server is best.")
        assert not r.ok

    def test_explanation_after_answer_rejected(self):
        r = parse_selection("path=/a/b.py, name=lookup\nBecause it looks things up.")
        assert not r.ok
        assert "one line" in r.error

    def test_missing_name(self):
        assert not parse_selection("path=/a/b.py").ok

    def test_empty_name(self):
        assert not parse_selection("path=/a/b.py, name=''").ok

    def test_none_input(self):
        assert not parse_selection(None).ok


class TestParseToolCall:
    def test_plain_line(self):
        r = parse_tool_call('name=get_weather, args={"location": "Tokyo"}')
        assert r.ok
        assert r.value == InvocationRequest("get_weather", {"location": "Tokyo"})

    def test_empty_object(self):
        r = parse_tool_call("name=list_notes, args={}")
        assert r.value == InvocationRequest("list_notes", {})

    def test_multiline_json(self):
        r = parse_tool_call('name=search, args={\n  "query": "a, b",\n  "limit": 3\n}')
        assert r.value.arguments == {"query": "a, b", "limit": 3}

    def test_escaped_characters_in_json(self):
        r = parse_tool_call(r'name=echo, args={"text": "say \"hi\"\nbye"}')
        assert r.value.arguments == {"text": 'say "hi"\nbye'}

    def test_fenced(self):
        r = parse_tool_call('```text\nname=get_weather, args={"location": "Paris"}\n```')
        assert r.value.arguments == {"location": "Paris"}

    def test_invalid_json(self):
        r = parse_tool_call("name=get_weather, args={location: Tokyo}")
        assert not r.ok
        assert "JSON" in r.error

    def test_json_array_rejected(self):
        r = parse_tool_call('name=get_weather, args=["Tokyo"]')
        assert not r.ok
        assert "object" in r.error

    def test_trailing_prose_rejected(self):
        r = parse_tool_call('name=get_weather, args={"location": "Tokyo"} thanks!')
        assert not r.ok

    def test_format_mismatch(self):
        assert not parse_tool_call("call get_weather with Tokyo").ok

    def test_never_raises_on_garbage(self):
        for text in ["", "name=", "args={}", "name=, args={}", "\x00\x01"]:
            assert not parse_tool_call(text).ok
