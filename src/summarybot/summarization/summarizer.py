"""Summary generation logic."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..errors import SummarizationError

_LOG = logging.getLogger(__name__)

DEFAULT_PROMPT_TEMPLATE = (
    "Please provide a concise summary of the following Discord conversation, "
    "highlighting the main topics discussed and any important conclusions or "
    "decisions made:\n\n{conversation}"
)


class LLMProtocol(Protocol):
    """Protocol for LLM interface."""

    async def generate(self, prompt: str) -> str:
        """Generate text from a prompt."""
        ...


def build_summary_prompt(transcript: str, template: Optional[str] = None) -> str:
    """
    Build the summarization prompt for a transcript.

    Args:
        transcript: Chronological ``author: content`` lines
        template: Prompt text with a ``{conversation}`` placeholder; the
            built-in prompt is used when omitted

    Returns:
        Formatted prompt for LLM
    """
    template = template or DEFAULT_PROMPT_TEMPLATE
    if "{conversation}" not in template:
        return f"{template.rstrip()}\n\n{transcript}"
    return template.replace("{conversation}", transcript)


class Summarizer:
    """Handles summary generation using an LLM."""

    def __init__(self, llm: LLMProtocol, template: Optional[str] = None):
        """
        Initialize summarizer.

        Args:
            llm: LLM instance that implements generate() method
            template: Optional prompt template (see build_summary_prompt)
        """
        self.llm = llm
        self.template = template

    async def summarize(self, transcript: str) -> str:
        """
        Summarize a transcript with a single LLM request.

        Raises:
            SummarizationError: If the request fails or the reply is empty
        """
        prompt = build_summary_prompt(transcript, self.template)
        _LOG.info("Requesting summary (%d prompt chars)", len(prompt))
        try:
            summary_text = await self.llm.generate(prompt)
        except Exception as exc:  # noqa: BLE001
            raise SummarizationError(f"Language model request failed: {exc}") from exc

        summary_text = (summary_text or "").strip()
        if not summary_text:
            raise SummarizationError("Language model returned an empty summary")
        return summary_text
