"""Exceptions raised across the summary bot."""

from __future__ import annotations


class SummaryBotError(Exception):
    """Base exception for summary bot errors."""


class ConfigError(SummaryBotError):
    """Required startup configuration is missing or malformed."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class ValidationError(SummaryBotError):
    """Window parameters are malformed or describe an impossible window.

    The message is written for the person who issued the command and is
    safe to show them.
    """


class FetchError(SummaryBotError):
    """A page of channel history could not be read."""


class SummarizationError(SummaryBotError):
    """The language model call failed or produced no text."""
