"""Backward pagination over a channel's history, bounded to a time window.

History is read newest to oldest, one page at a time, each page requested
``before`` the oldest record seen so far. Pages never overlap, so every
record in the window shows up in exactly one page read before the first
page that lies wholly before the window.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Optional

from ..errors import FetchError
from .time_windows import TimeWindow

_LOG = logging.getLogger(__name__)

PAGE_SIZE = 100


@dataclass(frozen=True)
class PageRecord:
    """One platform message record as returned by a page fetch."""

    id: int
    author: str
    content: str
    created_at: datetime


@dataclass(frozen=True)
class Page:
    """A batch of at most ``PAGE_SIZE`` records, newest first."""

    records: tuple[PageRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    @property
    def oldest(self) -> Optional[PageRecord]:
        if not self.records:
            return None
        return min(self.records, key=lambda r: (r.created_at, r.id))


@dataclass(frozen=True)
class RawMessage:
    message_id: int
    author: str
    content: str
    timestamp: datetime


class TerminationReason(enum.Enum):
    """Why a pagination run stopped."""

    HISTORY_EXHAUSTED = "history_exhausted"
    WINDOW_BOUNDARY = "window_boundary"
    FETCH_FAILED = "fetch_failed"
    DEADLINE_REACHED = "deadline_reached"


@dataclass(frozen=True)
class PaginationState:
    messages: tuple[RawMessage, ...] = ()
    cursor: Optional[int] = None
    pages_fetched: int = 0
    seen_ids: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class PaginationResult:
    messages: tuple[RawMessage, ...]
    reason: TerminationReason
    pages_fetched: int
    error: Optional[Exception] = None

    @property
    def incomplete(self) -> bool:
        """True when the walk stopped before reaching the window's start."""
        return self.reason in (TerminationReason.FETCH_FAILED, TerminationReason.DEADLINE_REACHED)


PageFetcher = Callable[[Optional[int], int], Awaitable[Page]]


def fold_page(
    state: PaginationState,
    page: Page,
    window: TimeWindow,
) -> tuple[PaginationState, Optional[TerminationReason]]:
    """
    Fold one fetched page into the pagination state.

    Args:
        state: State before this page
        page: The page that was just fetched
        window: Window records are filtered against

    Returns:
        tuple: (new_state, reason) where reason is None if another, older
               page should be fetched
    """
    pages_fetched = state.pages_fetched + 1
    oldest = page.oldest
    if oldest is None:
        return (
            PaginationState(state.messages, state.cursor, pages_fetched, state.seen_ids),
            TerminationReason.HISTORY_EXHAUSTED,
        )

    matched = [
        RawMessage(
            message_id=record.id,
            author=record.author,
            content=record.content,
            timestamp=record.created_at,
        )
        for record in page.records
        if window.contains(record.created_at) and record.id not in state.seen_ids
    ]
    new_state = PaginationState(
        messages=state.messages + tuple(matched),
        cursor=oldest.id,
        pages_fetched=pages_fetched,
        seen_ids=state.seen_ids | {m.message_id for m in matched},
    )

    # Stop only once a whole page misses the window. A page straddling the
    # start boundary still costs one more fetch.
    if not matched and oldest.created_at < window.start:
        return new_state, TerminationReason.WINDOW_BOUNDARY
    return new_state, None


async def collect_window(
    fetch_page: PageFetcher,
    window: TimeWindow,
    *,
    page_size: int = PAGE_SIZE,
    deadline: Optional[float] = None,
) -> PaginationResult:
    """
    Collect every message in *window* by walking history backwards.

    A failed fetch ends the walk with whatever was gathered so far instead of
    failing the whole request; callers must treat such a result as possibly
    incomplete, not as proof that no messages exist.

    Args:
        fetch_page: ``fetch_page(before, limit)`` returning one Page, newest
            first, strictly older than ``before`` when given
        window: Window to collect
        page_size: Records requested per page (capped at ``PAGE_SIZE``)
        deadline: Optional ``time.monotonic()`` value after which no new
            page is requested

    Returns:
        PaginationResult with matched messages in fetch order
    """
    limit = max(1, min(page_size, PAGE_SIZE))
    state = PaginationState()

    if window.is_empty:
        _LOG.info("Window %s is empty; skipping history fetch", window.label or window)
        return PaginationResult((), TerminationReason.WINDOW_BOUNDARY, 0)

    while True:
        if deadline is not None and time.monotonic() >= deadline:
            _LOG.warning(
                "History deadline reached after %d pages (%d messages gathered)",
                state.pages_fetched,
                len(state.messages),
            )
            return PaginationResult(state.messages, TerminationReason.DEADLINE_REACHED, state.pages_fetched)

        try:
            page = await fetch_page(state.cursor, limit)
        except FetchError as exc:
            _LOG.warning(
                "History fetch failed after %d pages (%d messages gathered): %s",
                state.pages_fetched,
                len(state.messages),
                exc,
            )
            return PaginationResult(
                state.messages, TerminationReason.FETCH_FAILED, state.pages_fetched, error=exc
            )

        state, reason = fold_page(state, page, window)
        _LOG.debug(
            "Page %d: %d records, %d messages in window so far",
            state.pages_fetched,
            len(page),
            len(state.messages),
        )
        if reason is not None:
            _LOG.info(
                "Pagination stopped (%s) after %d pages with %d messages",
                reason.value,
                state.pages_fetched,
                len(state.messages),
            )
            return PaginationResult(state.messages, reason, state.pages_fetched)
