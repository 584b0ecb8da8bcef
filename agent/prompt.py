# =============================================================================
# agent/prompt.py  —  The three prompts the router sends to the model
# =============================================================================
#
#   1. SELECTION  - pick exactly one (backend, tool) pair from the registry.
#   2. ARGUMENTS  - fill in the selected tool's input schema (prompt mode).
#   3. ANSWER     - turn raw tool output into a direct answer.
#
# The selection and argument prompts define a strict single-line output
# format; core/parsing.py is the other half of that contract.  If you change
# a format line here, change the grammar there.
# =============================================================================

import json

from core.models import Tool
from core.registry import ToolRegistry

SELECTION_FORMAT = "path=<path>, name=<tool name>"
TOOL_CALL_FORMAT = "name=<tool name>, args=<JSON object>"

TOOL_OUTPUT_START = "TOOL OUTPUT (start)"
TOOL_OUTPUT_END = "TOOL OUTPUT (end)"


def selection_prompt(query: str, registry: ToolRegistry) -> str:
    return f"""You select the single MCP tool that best answers a user query.
Each tool is identified by the path of the server that provides it and by its name.
Choose exactly ONE tool, the most relevant one, and output only its path and name.
Do not explain your choice. Do not add any other text.
Output format (one line, exactly): {SELECTION_FORMAT}

User query: {query}

Available tools:
{registry.render()}"""


def tool_call_prompt(query: str, tools: list[Tool]) -> str:
    tool_list = "\n".join(
        f"Tool{idx}: name='{tool.name}', description='{tool.description}', "
        f"input_schema={json.dumps(tool.input_schema, ensure_ascii=False)}"
        for idx, tool in enumerate(tools, start=1)
    )
    return f"""You call MCP server tools on behalf of a user.
From the tools below, output the tool name and its input arguments as a JSON object
for the one call that best answers the user query.
Follow input_schema for argument names and types, and always fill every required field.
Do not explain. Do not add any other text.
Output format (one line, exactly): {TOOL_CALL_FORMAT}

User query: {query}

Available tools:
{tool_list}"""


def answer_prompt(query: str, tool_output: str) -> str:
    return f"""User question: {query}

Using the MCP tool data below, answer the user's question concisely and directly,
in the same language as the question. Leave out anything the question did not ask for.

{TOOL_OUTPUT_START}:
{tool_output}
{TOOL_OUTPUT_END}"""
