# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the router)
# =============================================================================
#
# These dataclasses describe everything that flows between discovery,
# selection and invocation: the tools a backend advertises, the backend that
# owns them, the model's choice, and the call we are about to make.
#
# OWNERSHIP:
#   - A Tool belongs to exactly one BackendDescriptor.
#   - A BackendDescriptor owns its open connection until somebody closes it.
#   - A Selection is only a reference (backend id + tool name) into the
#     registry; resolving it is the registry's job (core/registry.py).
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol


def _empty_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


# -----------------------------------------------------------------------------
# Tool: one callable capability advertised by a backend
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Tool:
    """A tool as advertised by a backend during discovery.

    Immutable once discovered.  ``input_schema`` is the JSON-Schema-like
    mapping the backend reported; it is handed to the model verbatim.
    """

    name: str                          # Unique per backend
    description: str = ""              # Backends may omit it
    input_schema: dict[str, Any] = field(default_factory=_empty_schema)

    def required_params(self) -> list[str]:
        required = self.input_schema.get("required") or []
        return [str(name) for name in required]


class ToolConnection(Protocol):
    """What the orchestration layer needs from an open backend channel."""

    locator: str

    @property
    def closed(self) -> bool: ...

    async def list_tools(self) -> list[Tool]: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any: ...

    async def close(self) -> None: ...


# -----------------------------------------------------------------------------
# BackendDescriptor: a backend that survived discovery
# -----------------------------------------------------------------------------
@dataclass
class BackendDescriptor:
    """A reachable backend: its locator, its tools and its live connection."""

    id: str                            # The locator, e.g. "/srv/weather/index.js"
    tools: tuple[Tool, ...]            # Backend-reported order
    connection: ToolConnection

    def find_tool(self, name: str) -> Optional[Tool]:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None

    @property
    def is_open(self) -> bool:
        return not self.connection.closed

    async def close(self) -> None:
        await self.connection.close()


@dataclass(frozen=True)
class Selection:
    """The model's choice: one (backend, tool) pair."""

    backend_id: str
    tool_name: str


# -----------------------------------------------------------------------------
# InvocationRequest: the concrete call the Invoker is about to make
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class InvocationRequest:
    tool_name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    def missing_arguments(self, tool: Tool) -> list[str]:
        """Required schema parameters that the arguments do not provide."""
        return [p for p in tool.required_params() if p not in self.arguments]


@dataclass(frozen=True)
class ToolCallPlan:
    """What a ToolCallStrategy decided to do.

    Exactly one of ``request`` and ``direct_answer`` is set.  A direct answer
    means the model replied in plain text instead of asking for a call.
    """

    request: Optional[InvocationRequest] = None
    direct_answer: Optional[str] = None

    @property
    def is_call(self) -> bool:
        return self.request is not None
