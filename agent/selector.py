# =============================================================================
# agent/selector.py  —  Which (backend, tool) pair answers this query?
# =============================================================================
#
# choose_tool() runs over the descriptors that discovery returned
# (backends/discovery.py skips the candidates that failed):
#
#   1. aggregate their tools into a ToolRegistry
#   2. ask the selector for exactly one (backend, tool) pair
#   3. close every backend except the chosen one, then return
#
# If the selector fails, every backend is closed before the error
# propagates, so a failed selection leaves nothing open.
#
# SELECTORS:
#   ModelSelector    - asks the language model, strict one-line reply
#   KeywordSelector  - naive substring scoring, no model call (opt-in)
# =============================================================================

import re
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from agent.prompt import selection_prompt
from backends.discovery import close_all
from core.errors import SelectionError, SelectionParseError
from core.events import EventLog
from core.models import BackendDescriptor, Selection, Tool
from core.parsing import parse_selection
from core.registry import ToolRegistry


class Selector(Protocol):
    async def choose(
        self, query: str, registry: ToolRegistry
    ) -> tuple[BackendDescriptor, Tool]: ...


class ModelSelector:
    """One model call, one strictly formatted line back."""

    def __init__(self, model, max_tokens: int = 200) -> None:
        self.model = model
        self.max_tokens = max_tokens

    async def choose(self, query: str, registry: ToolRegistry) -> tuple[BackendDescriptor, Tool]:
        reply = await self.model.generate(selection_prompt(query, registry), self.max_tokens)
        raw = reply.text

        parsed = parse_selection(raw)
        if not parsed.ok:
            raise SelectionParseError(
                f"Model did not return a valid tool selection ({parsed.error}): {raw!r}",
                raw_text=raw,
            )
        try:
            return registry.resolve(parsed.value)
        except SelectionError as e:
            e.raw_text = raw
            raise


_WORD = re.compile(r"\w+", re.UNICODE)


class KeywordSelector:
    """Score tools by how many query words appear in their name/description.

    A lower-quality alternative to ModelSelector.  Ties go to the tool that
    comes first in the registry.
    """

    def __init__(self, min_word_length: int = 3) -> None:
        self.min_word_length = min_word_length

    def score(self, query: str, tool: Tool) -> int:
        haystack = f"{tool.name.replace('_', ' ')} {tool.description}".lower()
        words = {w for w in _WORD.findall(query.lower()) if len(w) >= self.min_word_length}
        return sum(1 for w in words if w in haystack)

    async def choose(self, query: str, registry: ToolRegistry) -> tuple[BackendDescriptor, Tool]:
        best = None
        best_score = 0
        for entry in registry:
            score = self.score(query, entry.tool)
            if score > best_score:
                best, best_score = entry, score
        if best is None:
            raise SelectionParseError(f"No tool matched any word of {query!r}", raw_text=query)
        return registry.resolve(Selection(backend_id=best.backend_id, tool_name=best.tool.name))


@dataclass
class SelectedTool:
    descriptor: BackendDescriptor
    tool: Tool
    registry: ToolRegistry

    async def close(self) -> None:
        await self.descriptor.close()


async def choose_tool(
    query: str,
    descriptors: Sequence[BackendDescriptor],
    selector: Selector,
    events: Optional[EventLog] = None,
) -> SelectedTool:
    """Choose one tool among discovered backends and release the others.

    Takes ownership of ``descriptors``: on success only the chosen one is
    still open; on failure none is.
    """
    events = events or EventLog(keep=False)
    registry = ToolRegistry(descriptors)

    try:
        descriptor, tool = await selector.choose(query, registry)
    except BaseException:
        await close_all(descriptors, events=events)
        raise

    await close_all(descriptors, keep=descriptor, events=events)
    events.status("selection.made", backend=descriptor.id, tool=tool.name)
    return SelectedTool(descriptor=descriptor, tool=tool, registry=registry)

