"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from summarybot.errors import FetchError
from summarybot.summarization.paginator import Page, PageRecord

BASE_TIME = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def at(minutes: float) -> datetime:
    """Timestamp ``minutes`` after 10:00 UTC on 2024-01-01."""
    return BASE_TIME + timedelta(minutes=minutes)


def make_record(message_id: int, created_at: datetime, author: str = "User", content: str | None = None) -> PageRecord:
    return PageRecord(
        id=message_id,
        author=author,
        content=content if content is not None else f"message {message_id}",
        created_at=created_at,
    )


class FakeHistory:
    """In-memory channel history served newest first, ``before`` exclusive.

    ``fail_after`` makes every fetch after that many successful pages raise
    FetchError.
    """

    def __init__(self, records: list[PageRecord], fail_after: Optional[int] = None):
        self.records = sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)
        self.fail_after = fail_after
        self.calls: list[tuple[Optional[int], int]] = []

    async def fetch(self, before: Optional[int], limit: int) -> Page:
        self.calls.append((before, limit))
        if self.fail_after is not None and len(self.calls) > self.fail_after:
            raise FetchError("simulated outage")
        if before is None:
            older = self.records
        else:
            cursor = next(r for r in self.records if r.id == before)
            older = [r for r in self.records if (r.created_at, r.id) < (cursor.created_at, cursor.id)]
        return Page(records=tuple(older[:limit]))

    async def fetch_for_channel(self, channel, before: Optional[int], limit: int) -> Page:
        return await self.fetch(before, limit)


def minute_history(count: int, start: datetime = BASE_TIME) -> list[PageRecord]:
    """``count`` records one minute apart, ids increasing with time."""
    return [make_record(i + 1, start + timedelta(minutes=i)) for i in range(count)]


class DummyLLM:
    """Dummy LLM that records prompts and returns a fixed summary."""

    def __init__(self, reply: str = "They talked about lunch.", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeResponder:
    def __init__(self, ack_error: Exception | None = None):
        self.ack_error = ack_error
        self.events: list[tuple] = []

    async def acknowledge(self) -> None:
        self.events.append(("ack",))
        if self.ack_error is not None:
            raise self.ack_error

    async def reply(self, text: str, private: bool = True) -> None:
        self.events.append(("reply", text, private))


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def dummy_llm():
    return DummyLLM()


@pytest.fixture
def mock_interaction():
    """Create a mock Discord interaction in a text channel."""
    interaction = MagicMock()
    interaction.channel = MagicMock()
    interaction.channel.id = 123456789
    interaction.user = MagicMock()
    interaction.user.name = "TestUser"
    interaction.command = MagicMock()
    interaction.command.name = "last"
    interaction.response.defer = AsyncMock()
    interaction.response.send_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction
