# =============================================================================
# core/parsing.py  —  Strict grammar for model responses
# =============================================================================
#
# The model answers the selection and argument prompts in plain text, so the
# output format is the whole protocol.  Two grammars are accepted:
#
#   selection   :=  "path=" value ", name=" value
#   tool call   :=  "name=" value ", args=" json-object
#   value       :=  bare | "'" chars "'" | '"' chars '"'
#
# Rules:
#   - Surrounding whitespace and a single ``` code fence are ignored.
#   - The selection must be exactly one non-empty line.
#   - A bare value runs to the separator and is trimmed; quote a value to
#     keep leading/trailing spaces or a ", name=" inside it.
#   - The JSON blob uses JSON's own escaping and may span lines, but must be
#     the whole remainder of the response and must decode to an object.
#
# Parsers never raise on malformed input.  They return a ParseResult and the
# caller decides which error type that maps to.
# =============================================================================

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from core.models import InvocationRequest, Selection

T = TypeVar("T")

_FENCE = re.compile(r"^```[\w-]*\s*\n?(?P<body>.*?)\n?```$", re.DOTALL)
_SELECTION = re.compile(r"^path=(?P<path>.+),\s*name=(?P<name>.+)$")
_TOOL_CALL = re.compile(r"^name=(?P<name>[^,]+),\s*args=(?P<args>.*)$", re.DOTALL)


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "ParseResult[T]":
        return cls(error=error)


def _strip_fence(text: str) -> str:
    text = text.strip()
    match = _FENCE.match(text)
    if match:
        return match.group("body").strip()
    return text


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_selection(text: str) -> ParseResult[Selection]:
    """Parse ``path=<backend_id>, name=<tool_name>``."""
    body = _strip_fence(text or "")
    lines = [line.strip() for line in body.splitlines() if line.strip()]
    if not lines:
        return ParseResult.failure("empty selection response")
    if len(lines) > 1:
        return ParseResult.failure(f"expected exactly one line, got {len(lines)}")

    match = _SELECTION.match(lines[0])
    if not match:
        return ParseResult.failure("expected 'path=<path>, name=<tool>'")

    backend_id = _unquote(match.group("path"))
    tool_name = _unquote(match.group("name"))
    if not backend_id or not tool_name:
        return ParseResult.failure("path and name must both be non-empty")
    return ParseResult.success(Selection(backend_id=backend_id, tool_name=tool_name))


def parse_tool_call(text: str) -> ParseResult[InvocationRequest]:
    """Parse ``name=<tool>, args=<JSON object>``."""
    body = _strip_fence(text or "")
    match = _TOOL_CALL.match(body)
    if not match:
        return ParseResult.failure("expected 'name=<tool>, args=<JSON object>'")

    tool_name = _unquote(match.group("name"))
    if not tool_name:
        return ParseResult.failure("tool name is empty")

    raw_args = match.group("args").strip()
    try:
        arguments: Any = json.loads(raw_args)
    except json.JSONDecodeError as e:
        return ParseResult.failure(f"args is not valid JSON: {e}")
    if not isinstance(arguments, dict):
        return ParseResult.failure(
            f"args must be a JSON object, got {type(arguments).__name__}"
        )
    return ParseResult.success(InvocationRequest(tool_name=tool_name, arguments=arguments))
