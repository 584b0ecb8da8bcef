# =============================================================================
# core/normalize.py  —  Invocation Result → plain text
# =============================================================================
#
# Backends answer a tool call with either:
#   a) an ordered list of typed content items ({"type": "text", "text": ...},
#      images, embedded resources, ...), or
#   b) a single structured value (a dict, a number, a list of records), or
#   c) a plain string.
#
# The answer synthesizer only ever sees text, so everything is flattened
# here.  Text items are joined with blank lines; anything else is
# pretty-printed JSON so it survives a round-trip through json.loads.
# =============================================================================

import json
from typing import Any, Mapping

PREVIEW_LIMIT = 1000
PREVIEW_EDGE = 500


def _item_type(item: Any) -> Any:
    if isinstance(item, Mapping):
        return item.get("type")
    return getattr(item, "type", None)


def _item_text(item: Any) -> Any:
    if isinstance(item, Mapping):
        return item.get("text")
    return getattr(item, "text", None)


def to_jsonable(value: Any) -> Any:
    """Convert pydantic models (MCP content types) into plain JSON values."""
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def pretty_json(value: Any) -> str:
    return json.dumps(to_jsonable(value), indent=2, ensure_ascii=False, default=str)


def normalize_result(result: Any) -> str:
    """Flatten a raw tool result into one text blob.

    Args:
        result: Whatever the backend returned for the call.

    Returns:
        - For a list of content items: the ``text`` of every ``type == "text"``
          item joined by ``"\\n\\n"``; if there are none, the pretty-printed
          list.
        - For a string: the string unchanged.
        - For anything else: pretty-printed JSON.
    """
    if isinstance(result, str):
        return result

    if isinstance(result, (list, tuple)):
        texts = [
            _item_text(item)
            for item in result
            if _item_type(item) == "text" and isinstance(_item_text(item), str)
        ]
        if texts:
            return "\n\n".join(texts)
        return pretty_json(result)

    return pretty_json(result)


def preview(text: str, limit: int = PREVIEW_LIMIT, edge: int = PREVIEW_EDGE) -> str:
    """Shorten long payloads to their head and tail for log lines."""
    if len(text) <= limit:
        return text
    return (
        f"(head {edge} chars)\n{text[:edge]}\n\n...omitted...\n\n"
        f"(tail {edge} chars)\n{text[-edge:]}"
    )
