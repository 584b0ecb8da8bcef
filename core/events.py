# =============================================================================
# core/events.py  —  Structured event log (the router's observability seam)
# =============================================================================
#
# Discovery, selection, invocation and synthesis never print.  They emit
# named events with keyword fields to an EventLog, which:
#   1. keeps them in memory (tests assert on the sequence of events), and
#   2. forwards them to a stdlib logger, colour-coded by kind.
#
# Logging goes to STDERR (configured in main.py).  STDOUT belongs to the
# interactive prompt.
#
# ANSI COLOR CODES:
#   - CYAN for requests (model prompts, tool calls)
#   - GREEN for responses (model replies, tool results)
#   - YELLOW for status / lifecycle lines
#   - RED for errors
# =============================================================================

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from core.normalize import preview

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RED = "\033[31m"
_RESET = "\033[0m"

REQUEST = "request"
RESPONSE = "response"
STATUS = "status"
ERROR = "error"

_COLORS = {
    REQUEST: _CYAN,
    RESPONSE: _GREEN,
    STATUS: _YELLOW,
    ERROR: _RED,
}

_LEVELS = {
    REQUEST: logging.DEBUG,
    RESPONSE: logging.DEBUG,
    STATUS: logging.INFO,
    ERROR: logging.WARNING,
}


@dataclass(frozen=True)
class Event:
    name: str
    kind: str = STATUS
    fields: dict[str, Any] = field(default_factory=dict)


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return preview(value)
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(value)


class EventLog:
    """Collects router events and mirrors them to ``logging``."""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        color: bool = True,
        keep: bool = True,
    ) -> None:
        self.logger = logger or logging.getLogger("router")
        self.color = color
        self.keep = keep
        self.events: list[Event] = []

    def emit(self, name: str, kind: str = STATUS, **fields: Any) -> Event:
        event = Event(name=name, kind=kind, fields=fields)
        if self.keep:
            self.events.append(event)

        level = _LEVELS.get(kind, logging.INFO)
        if self.logger.isEnabledFor(level):
            detail = ", ".join(f"{k}={_format_value(v)}" for k, v in fields.items())
            line = f"{name}: {detail}" if detail else name
            if self.color:
                line = f"{_COLORS.get(kind, '')}{line}{_RESET}"
            self.logger.log(level, line)
        return event

    def request(self, name: str, **fields: Any) -> Event:
        return self.emit(name, REQUEST, **fields)

    def response(self, name: str, **fields: Any) -> Event:
        return self.emit(name, RESPONSE, **fields)

    def status(self, name: str, **fields: Any) -> Event:
        return self.emit(name, STATUS, **fields)

    def error(self, name: str, **fields: Any) -> Event:
        return self.emit(name, ERROR, **fields)

    # --- inspection helpers --------------------------------------------------

    def names(self) -> list[str]:
        return [e.name for e in self.events]

    def of(self, name: str) -> list[Event]:
        return [e for e in self.events if e.name == name]

    def clear(self) -> None:
        self.events.clear()
