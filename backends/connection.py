# =============================================================================
# backends/connection.py  —  One spawned MCP backend and its stdio channel
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Starts a backend process, speaks MCP to it over stdin/stdout, lists its
#   tools, calls one tool at a time, and terminates the process on close().
#
# LAUNCH RULES:
#   The interpreter is chosen by the locator's extension:
#     .py  → the interpreter running the router (sys.executable)
#     .js  → node
#   Anything else is rejected before a process is started.  The child gets
#   the current environment, filtered to string values.
#
# TASK OWNERSHIP:
#   The MCP stdio client is a stack of anyio context managers, which must be
#   entered and exited by the same task.  Each connection therefore runs its
#   contexts inside one dedicated owner task (_serve) that parks on a
#   shutdown event.  Callers in any task talk to the ClientSession; close()
#   wakes the owner task, which unwinds the contexts and reaps the process.
# =============================================================================

import asyncio
import os
import sys
from pathlib import PurePath
from typing import Any, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from core.errors import (
    BackendConnectionError,
    ProtocolError,
    ToolInvocationError,
    UnsupportedLocatorError,
)
from core.events import EventLog
from core.models import Tool
from core.normalize import normalize_result, to_jsonable

INTERPRETERS: dict[str, str] = {
    ".py": sys.executable or ("python" if sys.platform == "win32" else "python3"),
    ".js": "node",
}


def resolve_command(locator: str) -> tuple[str, list[str]]:
    """Map a locator to the command line that launches it."""
    suffix = PurePath(locator).suffix.lower()
    interpreter = INTERPRETERS.get(suffix)
    if interpreter is None:
        raise UnsupportedLocatorError(
            locator,
            f"unsupported extension {suffix or '(none)'!r}; expected one of "
            f"{', '.join(sorted(INTERPRETERS))}",
        )
    return interpreter, [locator]


def child_environment() -> dict[str, str]:
    return {k: v for k, v in os.environ.items() if isinstance(v, str)}


class BackendConnection:
    """Lifecycle of one backend process: spawn → list/call → close."""

    def __init__(
        self,
        locator: str,
        params: StdioServerParameters,
        timeout: Optional[float] = None,
        events: Optional[EventLog] = None,
    ) -> None:
        self.locator = locator
        self.params = params
        self.timeout = timeout or None
        self.events = events or EventLog(keep=False)
        self._session: Optional[ClientSession] = None
        self._ready = asyncio.Event()
        self._shutdown = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    # -------------------------------------------------------------------------
    # spawn
    # -------------------------------------------------------------------------
    @classmethod
    async def spawn(
        cls,
        locator: str,
        timeout: Optional[float] = None,
        events: Optional[EventLog] = None,
    ) -> "BackendConnection":
        """Start the backend process and complete the MCP handshake.

        Raises:
            UnsupportedLocatorError: the extension has no interpreter mapping.
            BackendConnectionError: the process failed to start, died during
                the handshake, or did not finish it within ``timeout``.
        """
        command, args = resolve_command(locator)
        params = StdioServerParameters(command=command, args=args, env=child_environment())
        conn = cls(locator, params, timeout=timeout, events=events)
        try:
            await conn._start()
        except BaseException:
            await conn.close()
            raise
        conn.events.status("backend.spawned", locator=locator, command=command)
        return conn

    async def _serve(self) -> None:
        async with stdio_client(self.params) as (read_stream, write_stream):
            async with ClientSession(read_stream, write_stream) as session:
                await session.initialize()
                self._session = session
                self._ready.set()
                await self._shutdown.wait()

    async def _start(self) -> None:
        self._task = asyncio.create_task(self._serve(), name=f"backend:{self.locator}")
        ready = asyncio.create_task(self._ready.wait())
        try:
            done, _ = await asyncio.wait(
                {self._task, ready},
                timeout=self.timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            if not ready.done():
                ready.cancel()

        if self._ready.is_set():
            return
        if self._task in done:
            exc = None if self._task.cancelled() else self._task.exception()
            raise BackendConnectionError(
                self.locator, f"backend exited during handshake: {exc or 'cancelled'}"
            ) from exc
        raise BackendConnectionError(
            self.locator, f"handshake did not finish within {self.timeout}s"
        )

    # -------------------------------------------------------------------------
    # list / call
    # -------------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    def _require_session(self, error_type: type) -> ClientSession:
        if self._closed or self._session is None:
            raise error_type(f"{self.locator}: connection is not open")
        return self._session

    async def list_tools(self) -> list[Tool]:
        """Return the backend's tools in the order it reports them."""
        session = self._require_session(ProtocolError)
        try:
            result = await asyncio.wait_for(session.list_tools(), self.timeout)
        except asyncio.TimeoutError as e:
            raise ProtocolError(f"{self.locator}: tools/list timed out") from e
        except Exception as e:
            raise ProtocolError(f"{self.locator}: tools/list failed: {e}") from e

        tools = [
            Tool(
                name=t.name,
                description=t.description or "",
                input_schema=dict(t.inputSchema or {"type": "object", "properties": {}}),
            )
            for t in result.tools
        ]
        self.events.status(
            "tools.listed", locator=self.locator, tools=[t.name for t in tools]
        )
        return tools

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Send one tools/call request.  No retry.

        Returns:
            The content items as plain dicts (``{"type": "text", "text": ...}``),
            or the structured content when the backend sent no items.
        """
        session = self._require_session(ToolInvocationError)
        try:
            result = await asyncio.wait_for(session.call_tool(name, arguments), self.timeout)
        except asyncio.TimeoutError as e:
            raise ToolInvocationError(f"{name} on {self.locator} timed out") from e
        except Exception as e:
            raise ToolInvocationError(f"{name} on {self.locator} failed: {e}") from e

        content = to_jsonable(list(result.content or []))
        if result.isError:
            raise ToolInvocationError(
                f"{name} on {self.locator} returned an error: {normalize_result(content)}"
            )
        structured = getattr(result, "structuredContent", None)
        if not content and structured is not None:
            return structured
        return content

    # -------------------------------------------------------------------------
    # close
    # -------------------------------------------------------------------------
    async def close(self) -> None:
        """Terminate the backend.  Idempotent; safe after a failed spawn."""
        if self._closed:
            return
        self._closed = True
        self._session = None

        task = self._task
        if task is None:
            return
        if self._ready.is_set() and not task.done():
            self._shutdown.set()
        elif not task.done():
            task.cancel()

        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            self.events.error("backend.close_failed", locator=self.locator, error=str(e))
        self.events.status("backend.closed", locator=self.locator)
