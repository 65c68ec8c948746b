from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, TypedDict, Union


class ChatMessage(TypedDict):
    role: str
    content: Any


Prompt = Union[str, Sequence[ChatMessage]]


def normalize_prompt(prompt: Prompt) -> list[ChatMessage]:
    """Turn a bare string or a role/content sequence into a message list."""
    if isinstance(prompt, str):
        return [{"role": "user", "content": prompt}]
    if isinstance(prompt, Sequence):
        if not all(isinstance(m, dict) and "role" in m and "content" in m for m in prompt):
            raise TypeError("Each message must be a dict with 'role' and 'content' keys")
        return list(prompt)  # type: ignore[arg-type]
    raise TypeError("prompt must be a string or a sequence of message dicts")


class TextGeneratorAPI(ABC):
    """A language model backend that turns a prompt into text."""

    model: str

    @abstractmethod
    async def generate(self, prompt: Prompt) -> str:
        """Return generated text for the given prompt."""
        raise NotImplementedError
