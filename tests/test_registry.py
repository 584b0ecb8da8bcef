"""Tests for core/registry.py: aggregation order, lookup and rendering."""
import pytest

from conftest import WEATHER_TOOL, descriptor
from core.errors import UnknownBackendSelected, UnknownToolSelected
from core.models import Selection, Tool
from core.registry import ToolRegistry

NOTES = Tool(name="list_notes", description="lists saved notes")
SEARCH = Tool(name="search_notes", description="full-text note search")


@pytest.fixture
def registry():
    return ToolRegistry([
        descriptor("/srv/notes/server.py", NOTES, SEARCH),
        descriptor("/srv/weather/index.js", WEATHER_TOOL),
    ])


class TestAggregate:
    def test_backend_then_tool_order(self, registry):
        pairs = [(e.backend_id, e.tool.name) for e in registry]
        assert pairs == [
            ("/srv/notes/server.py", "list_notes"),
            ("/srv/notes/server.py", "search_notes"),
            ("/srv/weather/index.js", "get_weather"),
        ]

    def test_len(self, registry):
        assert len(registry) == 3

    def test_backend_without_tools(self):
        reg = ToolRegistry([descriptor("/srv/empty.py"), descriptor("/srv/w.js", WEATHER_TOOL)])
        assert [e.tool.name for e in reg] == ["get_weather"]
        assert len(reg.descriptors) == 2


class TestResolve:
    def test_exact_pair(self, registry):
        d, tool = registry.resolve(Selection("/srv/weather/index.js", "get_weather"))
        assert d.id == "/srv/weather/index.js"
        assert tool is WEATHER_TOOL

    def test_unknown_backend(self, registry):
        with pytest.raises(UnknownBackendSelected):
            registry.resolve(Selection("/srv/missing.py", "get_weather"))

    def test_tool_owned_by_other_backend(self, registry):
        with pytest.raises(UnknownToolSelected):
            registry.resolve(Selection("/srv/notes/server.py", "get_weather"))

    def test_lookup_is_exact(self, registry):
        with pytest.raises(UnknownBackendSelected):
            registry.resolve(Selection("/srv/weather", "get_weather"))


class TestRender:
    def test_one_line_per_tool(self, registry):
        lines = registry.render().splitlines()
        assert len(lines) == 3
        assert lines[2] == (
            "Tool3: path='/srv/weather/index.js', name='get_weather', "
            "description='returns current weather'"
        )
