# =============================================================================
# main.py  —  Entry Point for the MCP Tool Router
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py /path/to/weather/build/index.js /path/to/notes/server.py
#   (or set MCP_SERVER_CANDIDATES and run with no arguments)
#
# WHAT HAPPENS PER QUERY:
#   1. Every candidate MCP server is spawned and asked for its tools
#   2. The model picks exactly one (server, tool) pair; other servers close
#   3. You confirm the tool by typing "ok"
#   4. The model fills in the tool's arguments and the tool is called
#   5. The model turns the raw tool output into a direct answer
#
# Logs go to stderr; the conversation stays on stdout.
# =============================================================================

import argparse
import asyncio
import functools
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from agent.config import SELECTORS, TOOL_CALL_MODES, Settings
from agent.invoker import Invoker, make_strategy
from agent.llm import LanguageModel
from agent.selector import KeywordSelector, ModelSelector
from agent.session import Console, SessionController, TerminalConsole
from agent.synthesizer import AnswerSynthesizer
from backends.connection import BackendConnection
from core.errors import ConfigurationError
from core.events import EventLog


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mcp-router",
        description="Route free-text queries to the single best MCP tool and answer them.",
    )
    parser.add_argument(
        "locators", nargs="*",
        help="MCP server entry points (.py or .js); overrides MCP_SERVER_CANDIDATES",
    )
    parser.add_argument("--mode", choices=TOOL_CALL_MODES, help="tool call strategy")
    parser.add_argument("--selector", choices=SELECTORS, help="tool selection strategy")
    parser.add_argument("--model", help="LiteLLM model string")
    parser.add_argument("--once", action="store_true", help="exit after one query")
    parser.add_argument(
        "--parallel-discovery", action="store_true",
        help="spawn candidate servers concurrently",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log prompts and payloads")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace, env=None) -> Settings:
    settings = Settings.from_env(env)
    if args.locators:
        settings.locators = list(args.locators)
    if args.mode:
        settings.tool_call_mode = args.mode
    if args.selector:
        settings.selector = args.selector
    if args.model:
        settings.model_name = args.model
    settings.once = settings.once or args.once
    settings.parallel_discovery = settings.parallel_discovery or args.parallel_discovery
    settings.verbose = args.verbose
    return settings


def build_controller(
    settings: Settings,
    console: Optional[Console] = None,
    events: Optional[EventLog] = None,
    model=None,
) -> SessionController:
    """Wire every component from one Settings value."""
    events = events or EventLog(keep=False)
    model = model or LanguageModel(settings.model_name, timeout=settings.model_timeout, events=events)

    if settings.selector == "keyword":
        selector = KeywordSelector()
    else:
        selector = ModelSelector(model, max_tokens=settings.selection_max_tokens)

    strategy = make_strategy(settings.tool_call_mode, model, max_tokens=settings.argument_max_tokens)
    connect = functools.partial(
        BackendConnection.spawn, timeout=settings.backend_timeout, events=events
    )
    return SessionController(
        locators=settings.locators,
        connect=connect,
        selector=selector,
        invoker=Invoker(strategy, events=events),
        synthesizer=AnswerSynthesizer(model, max_tokens=settings.answer_max_tokens, events=events),
        console=console or TerminalConsole(),
        events=events,
        parallel_discovery=settings.parallel_discovery,
        affirmative=settings.affirmative,
        once=settings.once,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    # .env must be loaded before the model adapter is built: LiteLLM reads
    # the provider key from the environment.
    load_dotenv()
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [router] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        settings = build_settings(args)
        settings.validate()
    except ConfigurationError as e:
        print(f"⚠️  {e}", file=sys.stderr)
        return 1

    print("=" * 70)
    print("  MCP TOOL ROUTER")
    print(f"  model={settings.model_name}  mode={settings.tool_call_mode}  "
          f"selector={settings.selector}")
    print("=" * 70)

    controller = build_controller(settings)
    try:
        asyncio.run(controller.run())
    except KeyboardInterrupt:
        # Ctrl-C that arrived outside the session loop (Python 3.10 raises it
        # from the event loop itself); the loop has already said goodbye.
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
