# =============================================================================
# agent/invoker.py  —  Turn a selected tool + query into a real tool call
# =============================================================================
#
# WHAT THIS FILE DOES:
#   1. Asks a ToolCallStrategy to plan the call (tool name + arguments).
#   2. Checks the plan against the offered tools and their input schemas.
#   3. Sends the call to the owning backend, once, with no retry.
#   4. Normalizes the raw result into one text blob for the synthesizer.
#
# STRATEGIES (chosen once, at configuration time):
#   StructuredCallStrategy   - the model gets tool declarations and answers
#                              with a function-call intent.  A plain-text
#                              reply is taken as the final answer and no
#                              backend call is made.
#   PromptParsedCallStrategy - the model gets the schema in the prompt and
#                              must answer "name=<tool>, args=<JSON>".
# =============================================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from agent.prompt import tool_call_prompt
from core.errors import ArgumentSynthesisError, ConfigurationError
from core.events import EventLog
from core.models import BackendDescriptor, InvocationRequest, Tool, ToolCallPlan
from core.normalize import normalize_result
from core.parsing import parse_tool_call


class ToolCallStrategy(ABC):
    """Decides which call to make for a query, given the offered tools."""

    def __init__(self, model, max_tokens: int = 1000) -> None:
        self.model = model
        self.max_tokens = max_tokens

    @abstractmethod
    async def plan(self, query: str, tools: Sequence[Tool]) -> ToolCallPlan:
        """Return a ToolCallPlan or raise ArgumentSynthesisError."""


class StructuredCallStrategy(ToolCallStrategy):
    """Native tool calling: the model receives declarations, not prose."""

    async def plan(self, query: str, tools: Sequence[Tool]) -> ToolCallPlan:
        reply = await self.model.generate(query, self.max_tokens, tools=list(tools))
        if reply.function_call is not None:
            if not reply.function_call.name:
                raise ArgumentSynthesisError("Model requested a tool call without a name")
            return ToolCallPlan(
                request=InvocationRequest(
                    tool_name=reply.function_call.name,
                    arguments=dict(reply.function_call.args),
                )
            )
        if reply.text:
            return ToolCallPlan(direct_answer=reply.text)
        raise ArgumentSynthesisError("Model returned neither a tool call nor text")


class PromptParsedCallStrategy(ToolCallStrategy):
    """Prompt-as-protocol: schema in, ``name=<tool>, args=<JSON>`` out."""

    async def plan(self, query: str, tools: Sequence[Tool]) -> ToolCallPlan:
        reply = await self.model.generate(tool_call_prompt(query, list(tools)), self.max_tokens)
        parsed = parse_tool_call(reply.text)
        if not parsed.ok:
            raise ArgumentSynthesisError(
                f"Model did not return a valid tool call ({parsed.error}): {reply.text!r}",
                raw_text=reply.text,
            )
        return ToolCallPlan(request=parsed.value)


STRATEGIES: dict[str, type[ToolCallStrategy]] = {
    "native": StructuredCallStrategy,
    "prompt": PromptParsedCallStrategy,
}


def make_strategy(mode: str, model, max_tokens: int = 1000) -> ToolCallStrategy:
    try:
        strategy_cls = STRATEGIES[mode]
    except KeyError:
        raise ConfigurationError(f"Unknown tool call mode {mode!r}") from None
    return strategy_cls(model, max_tokens=max_tokens)


@dataclass(frozen=True)
class InvocationOutcome:
    text: str                                  # normalized tool output, or the direct answer
    request: Optional[InvocationRequest] = None
    raw: Any = None
    direct: bool = False                       # True when no backend call was made


class Invoker:
    def __init__(self, strategy: ToolCallStrategy, events: Optional[EventLog] = None) -> None:
        self.strategy = strategy
        self.events = events or EventLog(keep=False)

    @staticmethod
    def check(request: InvocationRequest, tools: Sequence[Tool]) -> Tool:
        """Make sure the planned call targets an offered tool with its required args."""
        tool = next((t for t in tools if t.name == request.tool_name), None)
        if tool is None:
            offered = ", ".join(t.name for t in tools)
            raise ArgumentSynthesisError(
                f"Model asked for tool {request.tool_name!r}, which is not one of: {offered}"
            )
        missing = request.missing_arguments(tool)
        if missing:
            raise ArgumentSynthesisError(
                f"Missing required argument(s) for {tool.name}: {', '.join(missing)}"
            )
        return tool

    async def invoke(
        self, query: str, descriptor: BackendDescriptor, tools: Sequence[Tool]
    ) -> InvocationOutcome:
        """Plan, check, call and normalize.

        Raises:
            ArgumentSynthesisError: the plan was unusable.
            ToolInvocationError: the backend rejected or failed the call.
            ModelError: the planning model call failed.
        """
        plan = await self.strategy.plan(query, tools)
        if not plan.is_call:
            self.events.status("invocation.short_circuit", backend=descriptor.id)
            return InvocationOutcome(text=plan.direct_answer or "", direct=True)

        request = plan.request
        self.check(request, tools)
        self.events.request(
            "invocation.request",
            backend=descriptor.id,
            tool=request.tool_name,
            arguments=request.arguments,
        )

        raw = await descriptor.connection.call_tool(request.tool_name, request.arguments)
        text = normalize_result(raw)
        self.events.response("invocation.result", tool=request.tool_name, text=text)
        return InvocationOutcome(text=text, request=request, raw=raw)
