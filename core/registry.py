# =============================================================================
# core/registry.py  —  Tool Registry (pure aggregation, no I/O)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Flattens the tools of every reachable backend into one ordered list of
#   (backend_id, Tool) entries, renders that list for the selection prompt,
#   and resolves a Selection back to exactly one descriptor and one tool.
#
# ORDERING:
#   Backend order (the configured locator order) first, then each backend's
#   own tool order.  Nothing here sorts.
# =============================================================================

from dataclasses import dataclass
from typing import Iterator, Sequence

from core.errors import UnknownBackendSelected, UnknownToolSelected
from core.models import BackendDescriptor, Selection, Tool


@dataclass(frozen=True)
class RegistryEntry:
    backend_id: str
    tool: Tool


class ToolRegistry:
    """In-memory view over all tools advertised by all reachable backends."""

    def __init__(self, descriptors: Sequence[BackendDescriptor]) -> None:
        self._descriptors = list(descriptors)
        self._entries = self.aggregate(self._descriptors)

    @staticmethod
    def aggregate(descriptors: Sequence[BackendDescriptor]) -> list[RegistryEntry]:
        return [
            RegistryEntry(backend_id=d.id, tool=tool)
            for d in descriptors
            for tool in d.tools
        ]

    @property
    def descriptors(self) -> list[BackendDescriptor]:
        return list(self._descriptors)

    @property
    def entries(self) -> list[RegistryEntry]:
        return list(self._entries)

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def backend(self, backend_id: str) -> BackendDescriptor:
        for descriptor in self._descriptors:
            if descriptor.id == backend_id:
                return descriptor
        raise UnknownBackendSelected(f"No discovered backend matches {backend_id!r}")

    def resolve(self, selection: Selection) -> tuple[BackendDescriptor, Tool]:
        """Look up the exact (backend, tool) pair a selection refers to.

        Raises:
            UnknownBackendSelected: no descriptor has ``selection.backend_id``.
            UnknownToolSelected: the descriptor does not own ``selection.tool_name``.
        """
        descriptor = self.backend(selection.backend_id)
        tool = descriptor.find_tool(selection.tool_name)
        if tool is None:
            raise UnknownToolSelected(
                f"Backend {selection.backend_id!r} has no tool named {selection.tool_name!r}"
            )
        return descriptor, tool

    def render(self) -> str:
        """Textual enumeration used in the selection prompt, one tool per line."""
        lines = []
        for idx, entry in enumerate(self._entries, start=1):
            lines.append(
                f"Tool{idx}: path='{entry.backend_id}', name='{entry.tool.name}', "
                f"description='{entry.tool.description}'"
            )
        return "\n".join(lines)
