"""
Prompt Engineering Module
==========================

System prompt and user prompt assembly for the language-model gateway.

Related files:
- adinsight/nlp/gateway.py: Sends these prompts
- adinsight/answer/aggregates.py: Totals rendered into the context JSON

Design principles:
- Keep prompts in code (not external files) for versioning
- The model only sees the compact JSON context, never raw database rows
- History is rendered as "role: content" lines, oldest first
"""

from __future__ import annotations

import json
from typing import Any, Dict, Sequence

from adinsight.schemas import ChatMessage

# Number of most recent history turns rendered into the prompt
PROMPT_HISTORY_TURNS = 8

SYSTEM_PROMPT_LINES = (
    "You are an analytics assistant for a marketing dashboard.",
    "Answer only from the provided JSON context.",
    'Use conversation history for references like "second one" or "that campaign".',
    "Be concise, clear, and numeric. Include exact values when available.",
    "If the data is insufficient, explicitly say what is missing.",
    "Do not invent benchmarks or external facts.",
)


def build_system_prompt() -> str:
    return " ".join(SYSTEM_PROMPT_LINES)


def render_history(history: Sequence[ChatMessage], turns: int = PROMPT_HISTORY_TURNS) -> str:
    """Last `turns` messages as "role: content" lines."""
    if turns <= 0:
        return ""
    return "\n".join(f"{message.role}: {message.content}" for message in list(history)[-turns:])


def build_user_prompt(question: str, history: Sequence[ChatMessage], context: Dict[str, Any]) -> str:
    """
    Assemble the user prompt: recent conversation, question, context JSON.

    Sections are separated by blank lines; the conversation section is
    omitted when there is no history.

    Example:
        Conversation so far:
        user: top 2 campaigns by ctr
        assistant: Top 2 campaigns by CTR: ...

        Question: what about the second one?

        Context JSON:

        {"totals": {...}, "campaigns": [...], "ads": [...]}
    """
    sections = []
    recent = render_history(history)
    if recent:
        sections.append(f"Conversation so far:\n{recent}")
    sections.append(f"Question: {question}")
    sections.append("Context JSON:")
    sections.append(json.dumps(context, separators=(",", ":")))
    return "\n\n".join(sections)
