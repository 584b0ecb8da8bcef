# =============================================================================
# agent/config.py  —  Runtime settings
# =============================================================================
#
# Settings are read from the environment (after main.py has loaded .env via
# python-dotenv) and then overridden by command-line flags.  The router's
# components receive the values they need at construction time; nothing
# reads os.environ after startup.
#
# ENVIRONMENT VARIABLES:
#   MCP_SERVER_CANDIDATES   backend locators, separated by os.pathsep
#   MODEL_NAME              LiteLlm model string (default openrouter/openai/gpt-4o)
#   API_KEY_ENV             name of the variable holding the provider key
#                           (default OPENROUTER_API_KEY)
#   TOOL_CALL_MODE          "prompt" (default) or "native"
#   SELECTOR                "model" (default) or "keyword"
#   BACKEND_TIMEOUT         seconds per spawn/list/call, 0 disables (default 60)
#   MODEL_TIMEOUT           seconds per model call, 0 disables (default 120)
#   PARALLEL_DISCOVERY      "true" to spawn candidates concurrently
# =============================================================================

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from core.errors import ConfigurationError

TOOL_CALL_MODES = ("prompt", "native")
SELECTORS = ("model", "keyword")

DEFAULT_MODEL = "openrouter/openai/gpt-4o"
DEFAULT_API_KEY_ENV = "OPENROUTER_API_KEY"


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _seconds(value: Optional[str], default: Optional[float]) -> Optional[float]:
    if value is None or value.strip() == "":
        return default
    try:
        seconds = float(value)
    except ValueError as e:
        raise ConfigurationError(f"Expected a number of seconds, got {value!r}") from e
    return seconds if seconds > 0 else None


def split_locators(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(os.pathsep) if part.strip()]


@dataclass
class Settings:
    locators: list[str] = field(default_factory=list)
    model_name: str = DEFAULT_MODEL
    api_key_env: str = DEFAULT_API_KEY_ENV
    tool_call_mode: str = "prompt"
    selector: str = "model"
    selection_max_tokens: int = 200
    argument_max_tokens: int = 1000
    answer_max_tokens: int = 1000
    backend_timeout: Optional[float] = 60.0
    model_timeout: Optional[float] = 120.0
    parallel_discovery: bool = False
    once: bool = False
    affirmative: str = "ok"
    verbose: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            locators=split_locators(env.get("MCP_SERVER_CANDIDATES")),
            model_name=env.get("MODEL_NAME") or DEFAULT_MODEL,
            api_key_env=env.get("API_KEY_ENV") or DEFAULT_API_KEY_ENV,
            tool_call_mode=(env.get("TOOL_CALL_MODE") or "prompt").lower(),
            selector=(env.get("SELECTOR") or "model").lower(),
            backend_timeout=_seconds(env.get("BACKEND_TIMEOUT"), 60.0),
            model_timeout=_seconds(env.get("MODEL_TIMEOUT"), 120.0),
            parallel_discovery=_flag(env.get("PARALLEL_DISCOVERY")),
        )

    def validate(self, env: Optional[Mapping[str, str]] = None) -> None:
        """Fail fast on anything that would make every cycle fail.

        Raises:
            ConfigurationError: missing API key, no locators, or an unknown
                mode/selector name.
        """
        env = os.environ if env is None else env
        if not env.get(self.api_key_env):
            raise ConfigurationError(f"{self.api_key_env} is not set")
        if not self.locators:
            raise ConfigurationError(
                "No backend locators configured (pass them as arguments or set "
                "MCP_SERVER_CANDIDATES)"
            )
        if self.tool_call_mode not in TOOL_CALL_MODES:
            raise ConfigurationError(
                f"Unknown tool call mode {self.tool_call_mode!r}; "
                f"expected one of {', '.join(TOOL_CALL_MODES)}"
            )
        if self.selector not in SELECTORS:
            raise ConfigurationError(
                f"Unknown selector {self.selector!r}; expected one of {', '.join(SELECTORS)}"
            )
