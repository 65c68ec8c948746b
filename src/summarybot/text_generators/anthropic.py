"""Text-generation backend that calls Anthropic's Claude models."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from anthropic import AsyncAnthropic, APIError, APIConnectionError, RateLimitError

from .base import Prompt, TextGeneratorAPI, normalize_prompt

_log = logging.getLogger(__name__)

_CLIENT_CACHE: Dict[str, AsyncAnthropic] = {}


def _content_to_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [item.get("text", "") for item in content if isinstance(item, dict) and item.get("type") == "text"]
        return "\n".join(p for p in parts if p)
    return str(content)


class AnthropicTextGenerator(TextGeneratorAPI):
    """Generate text using Anthropic's Claude models.

    Relies on an ``ANTHROPIC_API_KEY`` environment variable. Messages with
    role ``system`` are moved to the top-level ``system`` parameter as the
    Messages API requires. ``ANTHROPIC_MAX_TOKENS`` caps the reply length
    (2048 by default; summaries are short).
    """

    def __init__(self, model: str = "claude-sonnet-4-5") -> None:
        self.model = model

    def _get_client(self) -> AsyncAnthropic:
        """Return (and cache) a shared ``AsyncAnthropic`` client instance."""
        if "default" not in _CLIENT_CACHE:
            _CLIENT_CACHE["default"] = AsyncAnthropic()  # picks up API key
        return _CLIENT_CACHE["default"]

    async def generate(self, prompt: Prompt, temperature: float = 1.0) -> str:
        """Return Claude's reply for *prompt* as a plain string."""
        messages = normalize_prompt(prompt)

        system_parts: List[str] = []
        cleaned: List[Dict[str, Any]] = []
        for m in messages:
            role = (m.get("role") or "").lower()
            if role == "system":
                system_parts.append(_content_to_text(m.get("content")))
            else:
                cleaned.append({"role": role, "content": m.get("content")})
        system_text = "\n\n".join(p for p in system_parts if p).strip() or None

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": int(os.getenv("ANTHROPIC_MAX_TOKENS", "2048")),
            "messages": cleaned,
            "temperature": temperature,
        }
        if system_text:
            kwargs["system"] = system_text

        client = self._get_client()
        try:
            response = await client.messages.create(**kwargs)
        except RateLimitError as e:
            _log.warning("Anthropic rate limit hit for model %s: %s", self.model, e)
            raise
        except APIConnectionError as e:
            _log.error("Anthropic connection error for model %s: %s", self.model, e)
            raise
        except APIError as e:
            _log.error("Anthropic API error for model %s: %s", self.model, e.message)
            raise

        # SDK returns a list of content blocks; aggregate text blocks.
        parts: List[str] = []
        for block in getattr(response, "content", []) or []:
            text = getattr(block, "text", None)
            if text:
                parts.append(text)
        return "".join(parts).strip()
