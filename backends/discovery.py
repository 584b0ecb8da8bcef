# =============================================================================
# backends/discovery.py  —  Spawn + list every candidate backend
# =============================================================================
#
# Each locator is tried on its own.  A locator that fails to spawn or to list
# its tools is logged and dropped; it never stops the others.  The surviving
# descriptors come back in locator order whether discovery ran sequentially
# or concurrently.
#
# Discovery owns every connection it opens.  close_all() hands them back.
# =============================================================================

import asyncio
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from core.errors import NoBackendAvailable
from core.events import EventLog
from core.models import BackendDescriptor, ToolConnection

Connector = Callable[[str], Awaitable[ToolConnection]]


async def discover_one(locator: str, connect: Connector) -> BackendDescriptor:
    """Spawn one backend and fetch its tool list; close it if listing fails."""
    connection = await connect(locator)
    try:
        tools = await connection.list_tools()
    except BaseException:
        await connection.close()
        raise
    return BackendDescriptor(id=locator, tools=tuple(tools), connection=connection)


def _unique(locators: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered = []
    for locator in locators:
        if locator not in seen:
            seen.add(locator)
            ordered.append(locator)
    return ordered


async def discover(
    locators: Sequence[str],
    connect: Connector,
    events: Optional[EventLog] = None,
    parallel: bool = False,
) -> list[BackendDescriptor]:
    """Return a descriptor for every reachable backend, in locator order.

    Raises:
        NoBackendAvailable: no locator could be spawned and listed.
    """
    events = events or EventLog(keep=False)
    candidates = _unique(locators)
    events.status("discovery.start", candidates=candidates, parallel=parallel)

    descriptors: list[BackendDescriptor] = []

    if parallel:
        outcomes = await asyncio.gather(
            *(discover_one(locator, connect) for locator in candidates),
            return_exceptions=True,
        )
        interrupted: Optional[BaseException] = None
        for locator, outcome in zip(candidates, outcomes):
            if isinstance(outcome, BackendDescriptor):
                descriptors.append(outcome)
            elif isinstance(outcome, Exception):
                events.error("backend.failed", locator=locator, error=str(outcome),
                             error_type=type(outcome).__name__)
            else:
                interrupted = outcome
        if interrupted is not None:
            await close_all(descriptors, events=events)
            raise interrupted
    else:
        for locator in candidates:
            try:
                descriptors.append(await discover_one(locator, connect))
            except Exception as e:
                events.error("backend.failed", locator=locator, error=str(e),
                             error_type=type(e).__name__)

    if not descriptors:
        raise NoBackendAvailable(
            f"None of the {len(candidates)} candidate backend(s) could be reached"
        )
    events.status("discovery.done", reachable=[d.id for d in descriptors])
    return descriptors


async def close_all(
    descriptors: Iterable[BackendDescriptor],
    keep: Optional[BackendDescriptor] = None,
    events: Optional[EventLog] = None,
) -> None:
    """Close every descriptor except ``keep``.  Each is closed exactly once."""
    for descriptor in descriptors:
        if descriptor is keep:
            continue
        await descriptor.close()
        if events is not None:
            events.status("backend.released", locator=descriptor.id)
