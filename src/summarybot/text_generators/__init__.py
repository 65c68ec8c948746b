# text_generators/__init__.py
from typing import Optional

from .base import TextGeneratorAPI
from .anthropic import AnthropicTextGenerator
from .openai_chatgpt import OpenAIChatTextGenerator
from .ollama import OllamaTextGenerator

__all__ = [
    "TextGeneratorAPI",
    "AnthropicTextGenerator",
    "OpenAIChatTextGenerator",
    "OllamaTextGenerator",
    "SUPPORTED_APIS",
    "get_text_generator",
]

_GENERATORS = {
    "anthropic": AnthropicTextGenerator,
    "openai": OpenAIChatTextGenerator,
    "chatgpt": OpenAIChatTextGenerator,
    "ollama": OllamaTextGenerator,
}

SUPPORTED_APIS = tuple(sorted(_GENERATORS))


def get_text_generator(api: str, model: Optional[str] = None) -> TextGeneratorAPI:
    """Return a text-generator for the given API; ``model`` None keeps its default."""
    try:
        cls = _GENERATORS[api.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown API: {api}") from None
    return cls(model) if model else cls()
