"""Slash commands that summarize recent channel activity."""

from __future__ import annotations

import logging
from typing import Callable

import discord
from discord import app_commands
from discord.ext import commands

from ..summarization.orchestrator import CommandState, SummaryContext, SummaryInvocation
from ..summarization.time_windows import TimeWindow, resolve_last, resolve_range, resolve_since

_LOG = logging.getLogger(__name__)

MAX_MESSAGE_LEN = 2000
UNSUPPORTED_CHANNEL_REPLY = "I can only summarize text channels and threads."


def split_message(text: str, limit: int = MAX_MESSAGE_LEN) -> list[str]:
    """Split *text* into chunks of at most *limit* characters.

    Breaks between lines and only cuts mid-line for a single line longer
    than *limit*.
    """
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    current = ""

    def _flush() -> None:
        nonlocal current
        if current.strip():
            chunks.append(current.rstrip())
        current = ""

    for line in text.split("\n"):
        while len(line) > limit:
            _flush()
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            _flush()
            candidate = line
        current = candidate
    _flush()
    return chunks


class InteractionResponder:
    """Deferred-reply protocol on top of a Discord interaction."""

    def __init__(self, interaction: discord.Interaction) -> None:
        self.interaction = interaction

    async def acknowledge(self) -> None:
        await self.interaction.response.defer(ephemeral=True, thinking=True)

    async def reply(self, text: str, private: bool = True) -> None:
        for chunk in split_message(text):
            await self.interaction.followup.send(chunk, ephemeral=private)


class Summarize(commands.Cog):
    """Summarize what happened in the current channel during a time window."""

    summarize = app_commands.Group(
        name="summarize",
        description="Summarize channel messages from a specific time range",
    )

    def __init__(self, bot: commands.Bot, context: SummaryContext) -> None:
        self.bot = bot
        self.context = context
        _LOG.info("Summarize cog initialized")

    async def _run(
        self,
        interaction: discord.Interaction,
        resolve: Callable[[], TimeWindow],
    ) -> CommandState:
        channel = interaction.channel
        if channel is None or not hasattr(channel, "history"):
            await interaction.response.send_message(UNSUPPORTED_CHANNEL_REPLY, ephemeral=True)
            return CommandState.FAILED

        _LOG.info(
            "/summarize %s from %s in channel %s",
            interaction.command.name if interaction.command else "?",
            interaction.user,
            channel.id,
        )
        invocation = SummaryInvocation(InteractionResponder(interaction), self.context, channel, resolve)
        state = await invocation.run()
        if invocation.outcome is not None:
            _LOG.info("Summary command finished: %s (%s)", state.value, invocation.outcome.kind.value)
        return state

    @summarize.command(name="last", description="Summarize the last hours and minutes")
    @app_commands.describe(hours="Hours to look back", minutes="Minutes to look back")
    async def last(
        self,
        interaction: discord.Interaction,
        hours: app_commands.Range[int, 0, 24],
        minutes: app_commands.Range[int, 0, 59],
    ) -> None:
        await self._run(interaction, lambda: resolve_last(hours, minutes))

    @summarize.command(name="since", description="Summarize everything since a time earlier today")
    @app_commands.describe(hour="Hour of day (0-23)", minute="Minute (0-59)")
    async def since(
        self,
        interaction: discord.Interaction,
        hour: app_commands.Range[int, 0, 23],
        minute: app_commands.Range[int, 0, 59],
    ) -> None:
        await self._run(interaction, lambda: resolve_since(hour, minute))

    @summarize.command(name="range", description="Summarize between two dates and times")
    @app_commands.describe(
        start_date="Start date (YYYY-MM-DD)",
        start_hour="Start hour (0-23)",
        start_minute="Start minute (0-59)",
        end_date="End date (YYYY-MM-DD)",
        end_hour="End hour (0-23)",
        end_minute="End minute (0-59)",
    )
    async def range_(
        self,
        interaction: discord.Interaction,
        start_date: str,
        start_hour: app_commands.Range[int, 0, 23],
        start_minute: app_commands.Range[int, 0, 59],
        end_date: str,
        end_hour: app_commands.Range[int, 0, 23],
        end_minute: app_commands.Range[int, 0, 59],
    ) -> None:
        await self._run(
            interaction,
            lambda: resolve_range(start_date, start_hour, start_minute, end_date, end_hour, end_minute),
        )
