# =============================================================================
# agent/llm.py  —  The language model, behind one small interface
# =============================================================================
#
# The router treats the model as a black box:
#
#     generate(prompt, max_tokens, tools=None) -> ModelReply
#
# A ModelReply carries either text or a function-call intent (name + args).
# Function calls only happen when tool declarations are passed, which is
# what the native tool-calling strategy does.
#
# MODEL BACKEND:
#   Google ADK's LiteLlm adapter, so any LiteLLM model string works
#   ("openrouter/openai/gpt-4o", "anthropic/claude-3-5-sonnet-20241022",
#   "gemini/gemini-2.5-flash", ...).  LiteLlm reads the provider key from
#   the environment.
#
#   Requests use ADK's LlmRequest / google.genai types; tool input schemas
#   arrive as JSON Schema from MCP and are converted to genai Schema here.
# =============================================================================

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from google.adk.models.lite_llm import LiteLlm
from google.adk.models.llm_request import LlmRequest
from google.genai import types

from core.errors import ModelError
from core.events import EventLog
from core.models import Tool

_JSON_TYPES = {
    "string": types.Type.STRING,
    "number": types.Type.NUMBER,
    "integer": types.Type.INTEGER,
    "boolean": types.Type.BOOLEAN,
    "array": types.Type.ARRAY,
    "object": types.Type.OBJECT,
}


@dataclass(frozen=True)
class FunctionCallIntent:
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelReply:
    text: str = ""
    function_call: Optional[FunctionCallIntent] = None


def to_genai_schema(schema: dict[str, Any]) -> types.Schema:
    """Convert a JSON-Schema-like mapping into a google.genai Schema."""
    kind = schema.get("type")
    nullable = None
    if isinstance(kind, list):
        nullable = "null" in kind or None
        kind = next((k for k in kind if k != "null"), None)

    properties = schema.get("properties") or {}
    items = schema.get("items")
    enum = schema.get("enum")

    if kind in _JSON_TYPES:
        schema_type = _JSON_TYPES[kind]
    elif properties:
        schema_type = types.Type.OBJECT
    else:
        schema_type = None

    return types.Schema(
        type=schema_type,
        description=schema.get("description"),
        nullable=nullable,
        enum=[str(v) for v in enum] if enum else None,
        properties={k: to_genai_schema(v) for k, v in properties.items()} or None,
        items=to_genai_schema(items) if isinstance(items, dict) else None,
        required=list(schema.get("required") or []) or None,
    )


def function_declaration(tool: Tool) -> types.FunctionDeclaration:
    return types.FunctionDeclaration(
        name=tool.name,
        description=tool.description,
        parameters=to_genai_schema(tool.input_schema),
    )


class LanguageModel:
    """LiteLlm-backed ``generate(prompt) -> reply``."""

    def __init__(
        self,
        model_name: str,
        timeout: Optional[float] = None,
        events: Optional[EventLog] = None,
        llm: Optional[Any] = None,
    ) -> None:
        self.model_name = model_name
        self.timeout = timeout or None
        self.events = events or EventLog(keep=False)
        self.llm = llm or LiteLlm(model=model_name)

    def _request(
        self, prompt: str, max_tokens: int, tools: Optional[Sequence[Tool]]
    ) -> LlmRequest:
        config = types.GenerateContentConfig(max_output_tokens=max_tokens)
        if tools:
            config.tools = [
                types.Tool(function_declarations=[function_declaration(t) for t in tools])
            ]
        return LlmRequest(
            model=self.model_name,
            contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
            config=config,
        )

    async def _collect(self, request: LlmRequest) -> ModelReply:
        texts: list[str] = []
        call: Optional[FunctionCallIntent] = None
        async for response in self.llm.generate_content_async(request, stream=False):
            if getattr(response, "error_code", None):
                raise ModelError(
                    f"{self.model_name} returned {response.error_code}: "
                    f"{getattr(response, 'error_message', '')}"
                )
            if not (response.content and response.content.parts):
                continue
            for part in response.content.parts:
                if part.text:
                    texts.append(part.text)
                if part.function_call and call is None:
                    call = FunctionCallIntent(
                        name=part.function_call.name or "",
                        args=dict(part.function_call.args or {}),
                    )
        return ModelReply(text="".join(texts).strip(), function_call=call)

    async def generate(
        self,
        prompt: str,
        max_tokens: int,
        tools: Optional[Sequence[Tool]] = None,
    ) -> ModelReply:
        """Send one prompt and wait for the whole reply.

        Raises:
            ModelError: the provider failed, returned an error, or the call
                ran past ``timeout`` seconds.
        """
        request = self._request(prompt, max_tokens, tools)
        self.events.request("model.request", model=self.model_name, prompt=prompt,
                            tools=[t.name for t in tools or []])
        try:
            reply = await asyncio.wait_for(self._collect(request), self.timeout)
        except ModelError:
            raise
        except asyncio.TimeoutError as e:
            raise ModelError(f"{self.model_name} did not answer within {self.timeout}s") from e
        except Exception as e:
            raise ModelError(f"{self.model_name} call failed: {e}") from e

        self.events.response(
            "model.response",
            text=reply.text,
            function_call=reply.function_call.name if reply.function_call else None,
        )
        return reply
