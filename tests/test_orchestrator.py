"""Tests for the summary command state machine and outcome mapping."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import aiohttp
import pytest

from conftest import DummyLLM, FakeHistory, FakeResponder, at, make_record, minute_history
from summarybot.errors import ValidationError
from summarybot.summarization.discord_history import fetch_history_page
from summarybot.summarization.orchestrator import (
    FAILURE_REPLY,
    INCOMPLETE_NOTE,
    NO_MESSAGES_REPLY,
    CommandState,
    Outcome,
    OutcomeKind,
    SummaryContext,
    SummaryInvocation,
    render_outcome,
    summarize_channel,
)
from summarybot.summarization.summarizer import Summarizer
from summarybot.summarization.time_windows import TimeWindow, resolve_range

CHANNEL = object()


def _context(history: FakeHistory, llm: DummyLLM, **kwargs) -> SummaryContext:
    return SummaryContext(fetch_page=history.fetch_for_channel, summarizer=Summarizer(llm), **kwargs)


def _window(start_min, end_min, label="the test window"):
    return lambda: TimeWindow(start=at(start_min), end=at(end_min), label=label)


class TestSummarizeChannel:
    """Test the resolve -> collect -> format -> summarize pipeline."""

    @pytest.mark.asyncio
    async def test_scenario_transcript_contains_window_messages_in_order(self, dummy_llm):
        history = FakeHistory([
            make_record(1, at(-1), "Ann", "too early"),
            make_record(2, at(2), "Bob", "first"),
            make_record(3, at(4), "Cat", "second"),
            make_record(4, at(6), "Dan", "too late"),
        ])

        outcome = await summarize_channel(_context(history, dummy_llm), CHANNEL, _window(0, 5))

        assert outcome.kind is OutcomeKind.SUMMARY
        assert outcome.summary == dummy_llm.reply
        prompt = dummy_llm.prompts[0]
        assert prompt.endswith("Bob: first\nCat: second")
        assert "too early" not in prompt
        assert "too late" not in prompt

    @pytest.mark.asyncio
    async def test_range_end_before_start_never_fetches(self, dummy_llm):
        history = FakeHistory(minute_history(5))

        outcome = await summarize_channel(
            _context(history, dummy_llm),
            CHANNEL,
            lambda: resolve_range("2024-01-02", 0, 0, "2024-01-01", 0, 0),
        )

        assert outcome.kind is OutcomeKind.INVALID_WINDOW
        assert "before start" in outcome.detail
        assert history.calls == []
        assert dummy_llm.prompts == []

    @pytest.mark.asyncio
    async def test_zero_length_window_is_no_messages(self, dummy_llm):
        history = FakeHistory(minute_history(5))

        outcome = await summarize_channel(_context(history, dummy_llm), CHANNEL, _window(2, 2))

        assert outcome.kind is OutcomeKind.NO_MESSAGES
        assert dummy_llm.prompts == []

    @pytest.mark.asyncio
    async def test_fetch_failure_before_any_page_is_no_messages(self, dummy_llm):
        history = FakeHistory(minute_history(5), fail_after=0)

        outcome = await summarize_channel(_context(history, dummy_llm), CHANNEL, _window(-1, 10))

        assert outcome.kind is OutcomeKind.NO_MESSAGES
        assert outcome.incomplete
        text = render_outcome(outcome)
        assert text.startswith(NO_MESSAGES_REPLY)
        assert INCOMPLETE_NOTE in text

    @pytest.mark.asyncio
    async def test_partial_history_is_flagged(self, dummy_llm):
        history = FakeHistory(minute_history(300), fail_after=1)

        outcome = await summarize_channel(_context(history, dummy_llm), CHANNEL, _window(-1, 400))

        assert outcome.kind is OutcomeKind.SUMMARY
        assert outcome.incomplete
        assert INCOMPLETE_NOTE in render_outcome(outcome)

    @pytest.mark.asyncio
    async def test_model_failure(self):
        history = FakeHistory(minute_history(5))
        llm = DummyLLM(error=TimeoutError("slow"))

        outcome = await summarize_channel(_context(history, llm), CHANNEL, _window(-1, 10))

        assert outcome.kind is OutcomeKind.SUMMARIZATION_FAILED
        assert render_outcome(outcome) == FAILURE_REPLY

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, dummy_llm):
        async def broken(channel, before, limit):
            raise KeyError("boom")

        context = SummaryContext(fetch_page=broken, summarizer=Summarizer(dummy_llm))
        outcome = await summarize_channel(context, CHANNEL, _window(-1, 10))

        assert outcome.kind is OutcomeKind.UNEXPECTED_ERROR
        assert render_outcome(outcome) == FAILURE_REPLY

    @pytest.mark.asyncio
    async def test_channel_is_passed_to_fetcher(self, dummy_llm):
        seen = []
        history = FakeHistory(minute_history(3))

        async def fetch(channel, before, limit):
            seen.append(channel)
            return await history.fetch(before, limit)

        context = SummaryContext(fetch_page=fetch, summarizer=Summarizer(dummy_llm))
        await summarize_channel(context, CHANNEL, _window(-1, 10))

        assert seen and all(c is CHANNEL for c in seen)


class TestRenderOutcome:
    """Test the mapping from outcomes to user-facing text."""

    def test_summary_includes_window_label(self):
        window = TimeWindow(start=at(0), end=at(5), label="the last 0h 5m")
        text = render_outcome(Outcome(OutcomeKind.SUMMARY, window=window, summary="Lunch plans."))
        assert text == "Summary of the last 0h 5m:\n\nLunch plans."

    def test_invalid_window_shows_reason(self):
        text = render_outcome(Outcome(OutcomeKind.INVALID_WINDOW, detail="end time is before start time"))
        assert text == "Invalid time range: end time is before start time"

    def test_failure_detail_is_not_shown(self):
        outcome = Outcome(OutcomeKind.SUMMARIZATION_FAILED, detail="api key sk-secret rejected")
        assert "sk-secret" not in render_outcome(outcome)

    @pytest.mark.parametrize("kind", list(OutcomeKind))
    def test_every_kind_is_mapped(self, kind):
        window = TimeWindow(start=at(0), end=at(5), label="x")
        assert render_outcome(Outcome(kind, window=window, summary="s", detail="d"))


class TestSummaryInvocation:
    """Test the Idle -> Deferred -> Completed/Failed state machine."""

    @pytest.mark.asyncio
    async def test_acknowledges_before_replying(self, dummy_llm):
        responder = FakeResponder()
        invocation = SummaryInvocation(
            responder, _context(FakeHistory(minute_history(3)), dummy_llm), CHANNEL, _window(-1, 10)
        )
        assert invocation.state is CommandState.IDLE

        state = await invocation.run()

        assert state is CommandState.COMPLETED
        assert [e[0] for e in responder.events] == ["ack", "reply"]
        _, text, private = responder.events[1]
        assert text.startswith("Summary of the test window:")
        assert private is True

    @pytest.mark.asyncio
    async def test_no_messages_is_completed_not_failed(self, dummy_llm):
        responder = FakeResponder()
        invocation = SummaryInvocation(
            responder, _context(FakeHistory([]), dummy_llm), CHANNEL, _window(-1, 10)
        )

        assert await invocation.run() is CommandState.COMPLETED
        assert responder.events[-1][1] == NO_MESSAGES_REPLY

    @pytest.mark.asyncio
    async def test_validation_failure_ends_failed(self, dummy_llm):
        def resolve():
            raise ValidationError("minutes must be between 0 and 59 (got 75)")

        responder = FakeResponder()
        invocation = SummaryInvocation(responder, _context(FakeHistory([]), dummy_llm), CHANNEL, resolve)

        assert await invocation.run() is CommandState.FAILED
        assert len([e for e in responder.events if e[0] == "reply"]) == 1

    @pytest.mark.asyncio
    async def test_failed_acknowledge_does_no_work(self, dummy_llm):
        history = FakeHistory(minute_history(3))
        responder = FakeResponder(ack_error=RuntimeError("interaction expired"))
        invocation = SummaryInvocation(responder, _context(history, dummy_llm), CHANNEL, _window(-1, 10))

        assert await invocation.run() is CommandState.FAILED
        assert history.calls == []
        assert [e[0] for e in responder.events] == ["ack"]

    @pytest.mark.asyncio
    async def test_runs_only_once(self, dummy_llm):
        invocation = SummaryInvocation(
            FakeResponder(), _context(FakeHistory([]), dummy_llm), CHANNEL, _window(-1, 10)
        )
        await invocation.run()

        with pytest.raises(RuntimeError):
            await invocation.run()


class FlakyChannel:
    """Discord-like channel whose history drops the connection past the first page."""

    def __init__(self, count: int, error: Exception, fail_on_call: int = 2):
        self.id = 7
        self.calls = 0
        self.fail_on_call = fail_on_call
        self.messages = [
            SimpleNamespace(
                id=i + 1,
                created_at=at(i),
                author=SimpleNamespace(name=f"user{i % 3}", nick=None, global_name=None),
                content=f"message {i + 1}",
            )
            for i in range(count)
        ]
        self.error = error

    def history(self, *, limit, before=None):
        self.calls += 1
        return self._iterate(limit, self.calls >= self.fail_on_call)

    async def _iterate(self, limit, fail):
        if fail:
            raise self.error
        for msg in sorted(self.messages, key=lambda m: m.id, reverse=True)[:limit]:
            yield msg


class TestConnectionLoss:
    """Transport errors from Discord degrade to a partial result."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [OSError("connection reset"), aiohttp.ClientOSError(), asyncio.TimeoutError()],
        ids=["os-error", "client-os-error", "timeout"],
    )
    async def test_error_after_first_page_still_summarizes(self, dummy_llm, error):
        context = SummaryContext(fetch_page=fetch_history_page, summarizer=Summarizer(dummy_llm))

        outcome = await summarize_channel(context, FlakyChannel(150, error), _window(-1, 400))

        assert outcome.kind is OutcomeKind.SUMMARY
        assert outcome.incomplete
        assert dummy_llm.prompts[0].count(": message ") == 100
        assert INCOMPLETE_NOTE in render_outcome(outcome)

    @pytest.mark.asyncio
    async def test_error_on_first_page_is_no_messages(self, dummy_llm):
        channel = FlakyChannel(50, OSError("connection reset"), fail_on_call=1)
        context = SummaryContext(fetch_page=fetch_history_page, summarizer=Summarizer(dummy_llm))

        outcome = await summarize_channel(context, channel, _window(-1, 400))

        assert outcome.kind is OutcomeKind.NO_MESSAGES
        assert outcome.incomplete
        assert dummy_llm.prompts == []
