"""Time-bounded channel history retrieval and summarization."""

from .time_windows import TimeWindow, resolve_last, resolve_since, resolve_range
from .paginator import (
    PAGE_SIZE,
    Page,
    PageRecord,
    PaginationResult,
    RawMessage,
    TerminationReason,
    collect_window,
    fold_page,
)
from .formatter import build_conversation, format_transcript, render_transcript
from .summarizer import LLMProtocol, Summarizer, build_summary_prompt
from .orchestrator import (
    CommandState,
    Outcome,
    OutcomeKind,
    SummaryContext,
    SummaryInvocation,
    render_outcome,
    summarize_channel,
)

__all__ = [
    "TimeWindow",
    "resolve_last",
    "resolve_since",
    "resolve_range",
    "PAGE_SIZE",
    "Page",
    "PageRecord",
    "PaginationResult",
    "RawMessage",
    "TerminationReason",
    "collect_window",
    "fold_page",
    "build_conversation",
    "format_transcript",
    "render_transcript",
    "LLMProtocol",
    "Summarizer",
    "build_summary_prompt",
    "CommandState",
    "Outcome",
    "OutcomeKind",
    "SummaryContext",
    "SummaryInvocation",
    "render_outcome",
    "summarize_channel",
]
