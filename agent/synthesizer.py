# =============================================================================
# agent/synthesizer.py  —  Raw tool output in, a direct answer out
# =============================================================================
#
# The last model call of a cycle.  The prompt (agent/prompt.py) carries the
# literal query and the normalized tool output between TOOL OUTPUT markers.
# The reply is shown verbatim behind ANSWER_LABEL.
# =============================================================================

from typing import Optional

from agent.prompt import answer_prompt
from core.events import EventLog

ANSWER_LABEL = "[Answer]"


def label(answer: str) -> str:
    return f"{ANSWER_LABEL}\n{answer}"


class AnswerSynthesizer:
    """Phrases the final answer from one tool result.  One call, no retry."""

    def __init__(self, model, max_tokens: int = 1000, events: Optional[EventLog] = None) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.events = events or EventLog(keep=False)

    async def synthesize(self, query: str, tool_text: str) -> str:
        """Return the model's answer, stripped of surrounding whitespace."""
        prompt = answer_prompt(query, tool_text)
        self.events.request("answer.prompt", prompt=prompt)
        reply = await self.model.generate(prompt, self.max_tokens)
        return reply.text.strip()
