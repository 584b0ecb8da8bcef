# =============================================================================
# agent/session.py  —  Session Controller (one query, end to end, in a loop)
# =============================================================================
#
# STATE MACHINE (per cycle):
#
#   AwaitingQuery → Discovering → Selecting → AwaitingConfirmation
#                 → Invoking → Synthesizing → Done → AwaitingQuery ...
#
#   - AwaitingQuery: an empty line, a quit word, end of input or Ctrl-C
#     ends the session.
#   - Discovering / Selecting: backends/discovery.py + agent/selector.py.
#     On success exactly one backend is still open.
#   - AwaitingConfirmation: the user must type the affirmative ("ok");
#     anything else ends the cycle without calling the tool.
#   - Invoking: agent/invoker.py.  A native-mode plain-text reply skips
#     Synthesizing and becomes the answer directly.
#   - Done: the cycle's open backend is closed on every path, errors included.
#
# Every RouterError raised inside a cycle is reported and the loop carries on.
# =============================================================================

import asyncio
import json
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Sequence

from agent.invoker import Invoker
from agent.selector import SelectedTool, Selector, choose_tool
from agent.synthesizer import AnswerSynthesizer, label
from backends.discovery import Connector, discover
from core.errors import RouterError
from core.events import EventLog
from core.models import Tool

logger = logging.getLogger(__name__)

QUIT_WORDS = ("quit", "exit", "q")


class State(str, Enum):
    AWAITING_QUERY = "AwaitingQuery"
    DISCOVERING = "Discovering"
    SELECTING = "Selecting"
    AWAITING_CONFIRMATION = "AwaitingConfirmation"
    INVOKING = "Invoking"
    SYNTHESIZING = "Synthesizing"
    DONE = "Done"


class Console(Protocol):
    """Terminal I/O collaborator.  ``ask`` raises EOFError at end of input."""

    async def ask(self, prompt: str) -> str: ...

    def say(self, text: str) -> None: ...


class TerminalConsole:
    """stdin/stdout console.

    input() runs on a daemon thread, so a Ctrl-C at the prompt cancels the
    waiting task and the process can exit without anyone pressing Enter.
    """

    async def ask(self, prompt: str) -> str:
        loop = asyncio.get_running_loop()
        reply: asyncio.Future = loop.create_future()

        def settle(line: Optional[str], error: Optional[BaseException]) -> None:
            if reply.done():
                return
            if error is not None:
                reply.set_exception(error)
            else:
                reply.set_result(line)

        def read() -> None:
            line, error = None, None
            try:
                line = input(prompt)
            except Exception as e:
                error = e
            try:
                loop.call_soon_threadsafe(settle, line, error)
            except RuntimeError:
                return  # the loop closed while input() was blocked

        threading.Thread(target=read, name="console-input", daemon=True).start()
        return await reply

    def say(self, text: str) -> None:
        print(text, flush=True)


@dataclass
class CycleOutcome:
    query: str
    stopped_at: State = State.AWAITING_QUERY    # last state entered before Done
    selected: Optional[SelectedTool] = None
    answer: Optional[str] = None
    error: Optional[BaseException] = None
    declined: bool = False
    invoked: bool = False


class SessionController:
    def __init__(
        self,
        locators: Sequence[str],
        connect: Connector,
        selector: Selector,
        invoker: Invoker,
        synthesizer: AnswerSynthesizer,
        console: Console,
        events: Optional[EventLog] = None,
        parallel_discovery: bool = False,
        affirmative: str = "ok",
        once: bool = False,
    ) -> None:
        self.locators = list(locators)
        self.connect = connect
        self.selector = selector
        self.invoker = invoker
        self.synthesizer = synthesizer
        self.console = console
        self.events = events or EventLog(keep=False)
        self.parallel_discovery = parallel_discovery
        self.affirmative = affirmative
        self.once = once
        self.state = State.AWAITING_QUERY

    def _enter(self, state: State) -> None:
        self.state = state
        self.events.status("state", state=state.value)

    async def confirm(self, tool: Tool) -> bool:
        """Only the literal affirmative (trimmed, any case) counts as yes."""
        try:
            reply = await self.console.ask(
                f"Use MCP tool '{tool.name}'? Type '{self.affirmative}' to continue: "
            )
        except EOFError:
            return False
        return reply.strip().lower() == self.affirmative.lower()

    async def run_cycle(self, query: str) -> CycleOutcome:
        """Run one query through discovery, selection, invocation and synthesis."""
        outcome = CycleOutcome(query=query)
        try:
            self._enter(State.DISCOVERING)
            descriptors = await discover(
                self.locators, self.connect, events=self.events,
                parallel=self.parallel_discovery,
            )

            self._enter(State.SELECTING)
            outcome.selected = await choose_tool(
                query, descriptors, self.selector, events=self.events
            )
            selected = outcome.selected

            self._enter(State.AWAITING_CONFIRMATION)
            if not await self.confirm(selected.tool):
                outcome.declined = True
                self.events.status("cycle.declined", tool=selected.tool.name)
                self.console.say("Cancelled.")
                return outcome

            self.console.say(f"Selected MCP tool: {selected.tool.name} in {selected.descriptor.id}")
            self._enter(State.INVOKING)
            result = await self.invoker.invoke(query, selected.descriptor, [selected.tool])
            outcome.invoked = not result.direct
            if result.request is not None:
                args = json.dumps(result.request.arguments, ensure_ascii=False)
                self.console.say(f"[Calling tool {result.request.tool_name} with args {args}]")

            if result.direct:
                answer = result.text
            else:
                self._enter(State.SYNTHESIZING)
                answer = await self.synthesizer.synthesize(query, result.text)

            outcome.answer = answer
            self.console.say(label(answer))
        except RouterError as e:
            outcome.error = e
            self.events.error("cycle.error", state=self.state.value,
                              error_type=type(e).__name__, error=str(e))
            self.console.say(f"Error: {e}")
        except Exception as e:
            outcome.error = e
            logger.exception("Unexpected failure during %s", self.state.value)
            self.console.say(f"Error: {type(e).__name__}: {e}")
        finally:
            outcome.stopped_at = self.state
            if outcome.selected is not None:
                await outcome.selected.close()
            self._enter(State.DONE)
        return outcome

    async def run(self) -> None:
        """Loop until a quit signal, or after one cycle in ``once`` mode.

        An empty line, a quit word, end of input, Ctrl-C and cancellation of
        the running task all end the session.
        """
        self.console.say("MCP router started.")
        self.console.say(f"Type your query, or {'/'.join(QUIT_WORDS)} (or an empty line) to exit.")
        try:
            while True:
                self._enter(State.AWAITING_QUERY)
                query = (await self.console.ask("\nQuery: ")).strip()
                if not query or query.lower() in QUIT_WORDS:
                    break
                await self.run_cycle(query)
                if self.once:
                    break
        except (EOFError, KeyboardInterrupt, asyncio.CancelledError):
            self.events.status("session.interrupted", state=self.state.value)
        self.console.say("Goodbye!")
