# text_generators/openai_chatgpt.py
from __future__ import annotations

import logging
from typing import Dict

from openai import APIConnectionError, APIError, AsyncOpenAI, RateLimitError

from .base import Prompt, TextGeneratorAPI, normalize_prompt

_CLIENT_CACHE: Dict[str, AsyncOpenAI] = {}
_LOG = logging.getLogger(__name__)


class OpenAIChatTextGenerator(TextGeneratorAPI):
    """Text-generation backend for OpenAI chat models.

    Uses the Chat Completions API. Requires OPENAI_API_KEY in the
    environment. Accepts either a single string or a list of
    {role, content} messages.
    """

    provider = "OpenAI"

    def __init__(self, model: str = "gpt-4o-mini") -> None:
        self.model = model

    def _get_client(self) -> AsyncOpenAI:
        if "default" not in _CLIENT_CACHE:
            _CLIENT_CACHE["default"] = AsyncOpenAI()  # picks up OPENAI_API_KEY
        return _CLIENT_CACHE["default"]

    async def generate(self, prompt: Prompt, *, temperature: float = 1.0) -> str:
        messages = normalize_prompt(prompt)
        client = self._get_client()

        _LOG.debug("%s: generating with model=%s, messages=%d", self.provider, self.model, len(messages))
        try:
            resp = await client.chat.completions.create(
                model=self.model,
                messages=messages,      # type: ignore[arg-type]
                temperature=temperature,
            )
        except RateLimitError as e:
            _LOG.warning("%s rate limit hit for model %s: %s", self.provider, self.model, e)
            raise
        except APIConnectionError as e:
            _LOG.error("%s connection error for model %s: %s", self.provider, self.model, e)
            raise
        except APIError as e:
            _LOG.error(
                "%s API error for model %s (status %s): %s",
                self.provider,
                self.model,
                getattr(e, "status_code", "unknown"),
                e,
            )
            raise

        choice = resp.choices[0]
        return (choice.message.content or "").strip()
