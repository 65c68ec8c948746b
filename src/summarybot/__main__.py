"""Start the summary bot: ``python -m summarybot``."""

from __future__ import annotations

import asyncio
import logging
import sys
import time

import discord
from discord.ext import commands
from dotenv import load_dotenv

from .cogs.summarize import Summarize
from .errors import ConfigError
from .settings import Settings, get_summary_prompt_template, load_settings
from .summarization.discord_history import fetch_history_page
from .summarization.orchestrator import SummaryContext
from .summarization.summarizer import Summarizer
from .text_generators import get_text_generator

logger = logging.getLogger("summarybot")

RETRY_DELAY_SECONDS = 5


def build_context(settings: Settings) -> SummaryContext:
    """Wire the history reader and the configured language model together."""
    llm = get_text_generator(settings.summary_provider, settings.summary_model)
    logger.info("Summaries use %s model %s", settings.summary_provider, llm.model)
    return SummaryContext(
        fetch_page=fetch_history_page,
        summarizer=Summarizer(llm, template=get_summary_prompt_template()),
        history_deadline=settings.history_deadline,
    )


class SummaryBot(commands.Bot):
    def __init__(self, settings: Settings, context: SummaryContext) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            application_id=settings.application_id,
            help_command=None,
        )
        self.settings = settings
        self.context = context

    async def setup_hook(self) -> None:
        await self.add_cog(Summarize(self, self.context))
        try:
            logger.info("Started refreshing application (/) commands.")
            synced = await self.tree.sync()
            logger.info("Successfully reloaded %d application (/) commands.", len(synced))
        except discord.HTTPException:
            logger.exception("Error registering commands")

    async def on_ready(self) -> None:
        logger.info("Bot is ready. Logged in as %s (ID: %s)", self.user, self.user.id if self.user else "?")


async def _serve(settings: Settings) -> None:
    bot = SummaryBot(settings, build_context(settings))
    async with bot:
        logger.info("starting bot")
        await bot.start(settings.discord_token)


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", "; ".join(exc.problems))
        sys.exit(1)
    logging.getLogger().setLevel(settings.log_level)

    # Retry on transient connect errors (e.g., gateway timeouts)
    while True:
        try:
            asyncio.run(_serve(settings))
            break  # Normal exit
        except discord.LoginFailure:
            logger.error("Discord rejected the bot token")
            sys.exit(1)
        except KeyboardInterrupt:
            break
        except Exception as e:  # noqa: BLE001
            logger.exception("Bot crashed during startup/connect; retrying in %ds: %s", RETRY_DELAY_SECONDS, e)
            time.sleep(RETRY_DELAY_SECONDS)


if __name__ == "__main__":
    main()
