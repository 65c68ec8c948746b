"""Run one summary command from window resolution to final reply."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol

from ..errors import SummarizationError, ValidationError
from .formatter import format_transcript
from .paginator import PAGE_SIZE, Page, collect_window
from .summarizer import Summarizer
from .time_windows import TimeWindow

_LOG = logging.getLogger(__name__)

NO_MESSAGES_REPLY = "No messages found in the specified time range."
FAILURE_REPLY = "Sorry, there was an error generating the summary."
INCOMPLETE_NOTE = "_Some channel history could not be read, so this summary may be incomplete._"


class Responder(Protocol):
    """Reply side of the chat platform's deferred-reply protocol."""

    async def acknowledge(self) -> None:
        ...

    async def reply(self, text: str, private: bool = True) -> None:
        ...


ChannelPageFetcher = Callable[[Any, Optional[int], int], Awaitable[Page]]


@dataclass(frozen=True)
class SummaryContext:
    """Collaborators shared by every invocation.

    ``fetch_page(channel, before, limit)`` reads one page of history and
    ``summarizer`` turns a transcript into a summary. ``history_deadline`` is
    the number of seconds pagination may run before returning what it has.
    """

    fetch_page: ChannelPageFetcher
    summarizer: Summarizer
    page_size: int = PAGE_SIZE
    history_deadline: Optional[float] = None


class OutcomeKind(enum.Enum):
    SUMMARY = "summary"
    NO_MESSAGES = "no_messages"
    INVALID_WINDOW = "invalid_window"
    SUMMARIZATION_FAILED = "summarization_failed"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    window: Optional[TimeWindow] = None
    summary: Optional[str] = None
    detail: Optional[str] = None
    incomplete: bool = False

    @property
    def succeeded(self) -> bool:
        return self.kind in (OutcomeKind.SUMMARY, OutcomeKind.NO_MESSAGES)


async def summarize_channel(
    context: SummaryContext,
    channel: Any,
    resolve: Callable[[], TimeWindow],
) -> Outcome:
    """
    Resolve a window, collect its messages and summarize them.

    Never raises; every failure is reported as an Outcome.

    Args:
        context: Shared collaborators
        channel: Channel handle passed through to ``context.fetch_page``
        resolve: Zero-argument callable producing the TimeWindow

    Returns:
        Outcome describing the result
    """
    window: Optional[TimeWindow] = None
    try:
        window = resolve()
        _LOG.info("Summarizing %s (%s .. %s)", window.label, window.start, window.end)

        async def fetch_page(before: Optional[int], limit: int) -> Page:
            return await context.fetch_page(channel, before, limit)

        deadline = None
        if context.history_deadline is not None:
            deadline = time.monotonic() + context.history_deadline

        result = await collect_window(
            fetch_page,
            window,
            page_size=context.page_size,
            deadline=deadline,
        )
        if not result.messages:
            return Outcome(OutcomeKind.NO_MESSAGES, window=window, incomplete=result.incomplete)

        transcript = format_transcript(result.messages)
        summary = await context.summarizer.summarize(transcript)
        return Outcome(
            OutcomeKind.SUMMARY,
            window=window,
            summary=summary,
            incomplete=result.incomplete,
        )
    except ValidationError as exc:
        _LOG.info("Rejected summary window: %s", exc)
        return Outcome(OutcomeKind.INVALID_WINDOW, detail=str(exc))
    except SummarizationError as exc:
        _LOG.exception("Summarization failed")
        return Outcome(OutcomeKind.SUMMARIZATION_FAILED, window=window, detail=str(exc))
    except Exception as exc:  # noqa: BLE001
        _LOG.exception("Unexpected error while summarizing")
        return Outcome(OutcomeKind.UNEXPECTED_ERROR, window=window, detail=repr(exc))


def render_outcome(outcome: Outcome) -> str:
    """Map an outcome to the text shown to the user."""
    kind = outcome.kind
    if kind is OutcomeKind.SUMMARY:
        label = outcome.window.label if outcome.window and outcome.window.label else "the selected time range"
        text = f"Summary of {label}:\n\n{outcome.summary}"
        if outcome.incomplete:
            text += f"\n\n{INCOMPLETE_NOTE}"
        return text
    if kind is OutcomeKind.NO_MESSAGES:
        if outcome.incomplete:
            return f"{NO_MESSAGES_REPLY}\n\n{INCOMPLETE_NOTE}"
        return NO_MESSAGES_REPLY
    if kind is OutcomeKind.INVALID_WINDOW:
        return f"Invalid time range: {outcome.detail}"
    if kind in (OutcomeKind.SUMMARIZATION_FAILED, OutcomeKind.UNEXPECTED_ERROR):
        return FAILURE_REPLY
    raise AssertionError(f"Unhandled outcome kind: {kind}")


class CommandState(enum.Enum):
    IDLE = "idle"
    DEFERRED = "deferred"
    COMPLETED = "completed"
    FAILED = "failed"


class SummaryInvocation:
    """One summary command, from acknowledgement to final reply."""

    def __init__(
        self,
        responder: Responder,
        context: SummaryContext,
        channel: Any,
        resolve: Callable[[], TimeWindow],
    ) -> None:
        self.responder = responder
        self.context = context
        self.channel = channel
        self.resolve = resolve
        self.state = CommandState.IDLE
        self.outcome: Optional[Outcome] = None

    async def run(self) -> CommandState:
        """
        Acknowledge the command, do the work and send exactly one reply.

        The platform only waits a few seconds for the acknowledgement, so it
        goes out before anything else.
        """
        if self.state is not CommandState.IDLE:
            raise RuntimeError(f"Invocation already ran (state={self.state.value})")

        try:
            await self.responder.acknowledge()
        except Exception:  # noqa: BLE001
            _LOG.exception("Failed to acknowledge summary command")
            self.state = CommandState.FAILED
            return self.state
        self.state = CommandState.DEFERRED

        self.outcome = await summarize_channel(self.context, self.channel, self.resolve)
        try:
            await self.responder.reply(render_outcome(self.outcome), private=True)
        except Exception:  # noqa: BLE001
            _LOG.exception("Failed to deliver summary reply")
            self.state = CommandState.FAILED
            return self.state

        self.state = CommandState.COMPLETED if self.outcome.succeeded else CommandState.FAILED
        return self.state
