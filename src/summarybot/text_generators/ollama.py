# text_generators/ollama.py
from __future__ import annotations

import os

from openai import AsyncOpenAI

from .openai_chatgpt import OpenAIChatTextGenerator

_CLIENT_CACHE: dict[str, AsyncOpenAI] = {}

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434/v1"


class OllamaTextGenerator(OpenAIChatTextGenerator):
    """Text-generation backend for a local Ollama server.

    Talks to Ollama's OpenAI-compatible endpoint at OLLAMA_BASE_URL
    (default http://localhost:11434/v1). No API key is needed.
    """

    provider = "Ollama"

    def __init__(self, model: str = "llama3.2") -> None:
        super().__init__(model)

    def _get_client(self) -> AsyncOpenAI:
        base_url = os.getenv("OLLAMA_BASE_URL", DEFAULT_OLLAMA_BASE_URL)
        if base_url not in _CLIENT_CACHE:
            # the SDK insists on a key; Ollama ignores it
            _CLIENT_CACHE[base_url] = AsyncOpenAI(api_key="ollama", base_url=base_url)
        return _CLIENT_CACHE[base_url]
