"""Turn retrieved messages into a chronological transcript."""

from __future__ import annotations

from typing import Iterable

from .paginator import RawMessage


def build_conversation(messages: Iterable[RawMessage]) -> tuple[RawMessage, ...]:
    """Sort messages oldest first. Equal timestamps keep their fetch order."""
    return tuple(sorted(messages, key=lambda m: m.timestamp))


def render_transcript(conversation: Iterable[RawMessage]) -> str:
    return "\n".join(f"{msg.author}: {msg.content}" for msg in conversation)


def format_transcript(messages: Iterable[RawMessage]) -> str:
    """Build the transcript passed to the summarizer."""
    return render_transcript(build_conversation(messages))
