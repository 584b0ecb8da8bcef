"""Shared fakes: in-memory backends, a scripted model and a scripted console."""
from typing import Any, Optional

import pytest

from agent.llm import FunctionCallIntent, ModelReply
from core.errors import BackendConnectionError
from core.events import EventLog
from core.models import BackendDescriptor, Tool

WEATHER_TOOL = Tool(
    name="get_weather",
    description="returns current weather",
    input_schema={
        "type": "object",
        "properties": {"location": {"type": "string"}},
        "required": ["location"],
    },
)


class FakeConnection:
    """Stands in for BackendConnection; counts closes and records calls."""

    def __init__(
        self,
        locator: str,
        tools: list[Tool],
        results: Optional[dict] = None,
        list_error: Optional[Exception] = None,
    ) -> None:
        self.locator = locator
        self.tools = list(tools)
        self.results = results or {}
        self.list_error = list_error
        self.calls: list[tuple[str, dict]] = []
        self.close_count = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def list_tools(self) -> list[Tool]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.tools)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        self.calls.append((name, arguments))
        result = self.results.get(name, [{"type": "text", "text": f"{name} ok"}])
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            self.close_count += 1


class FakeBackends:
    """A connector over a fixed set of fake backends; unknown locators fail."""

    def __init__(self, backends: dict[str, FakeConnection]) -> None:
        self.backends = backends
        self.spawned: list[FakeConnection] = []

    async def connect(self, locator: str) -> FakeConnection:
        conn = self.backends.get(locator)
        if conn is None:
            raise BackendConnectionError(locator, "no such file")
        conn._closed = False  # a fresh spawn of the same backend
        self.spawned.append(conn)
        return conn

    def open_connections(self) -> list[FakeConnection]:
        return [c for c in self.spawned if not c.closed]


class FakeModel:
    """Returns scripted replies in order and remembers every prompt."""

    def __init__(self, *replies) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []
        self.tool_sets: list[Optional[list[Tool]]] = []

    async def generate(self, prompt: str, max_tokens: int, tools=None) -> ModelReply:
        self.prompts.append(prompt)
        self.tool_sets.append(tools)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return ModelReply(text=reply)
        return reply


class FakeConsole:
    def __init__(self, *inputs: str) -> None:
        self.inputs = list(inputs)
        self.prompts: list[str] = []
        self.output: list[str] = []

    async def ask(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.inputs:
            raise EOFError
        return self.inputs.pop(0)

    def say(self, text: str) -> None:
        self.output.append(text)


def tool_call(name: str, **args) -> ModelReply:
    return ModelReply(function_call=FunctionCallIntent(name=name, args=args))


def descriptor(locator: str, *tools: Tool) -> BackendDescriptor:
    return BackendDescriptor(id=locator, tools=tuple(tools), connection=FakeConnection(locator, list(tools)))


@pytest.fixture
def events():
    return EventLog(color=False)


@pytest.fixture
def weather_backends():
    """Two configured locators; only the weather one is reachable."""
    weather = FakeConnection(
        "/srv/weather/build/index.js",
        [WEATHER_TOOL],
        results={"get_weather": [{"type": "text", "text": "Tokyo: 18°C, light rain"}]},
    )
    return FakeBackends({"/srv/weather/build/index.js": weather})
