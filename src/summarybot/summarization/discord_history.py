"""Read channel history from Discord one page at a time."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

import aiohttp
import discord

from ..errors import FetchError
from .paginator import PAGE_SIZE, Page, PageRecord

if TYPE_CHECKING:
    from discord.abc import Messageable

_LOG = logging.getLogger(__name__)


def author_name(user: discord.User | discord.Member) -> str:
    """Server nickname, then global display name, then username."""
    return getattr(user, "nick", None) or getattr(user, "global_name", None) or user.name


def to_page_record(message: discord.Message) -> PageRecord:
    return PageRecord(
        id=message.id,
        author=author_name(message.author),
        content=message.content or "",
        created_at=message.created_at,
    )


async def fetch_history_page(
    channel: Messageable,
    before: Optional[int],
    limit: int = PAGE_SIZE,
) -> Page:
    """
    Fetch one page of *channel* history, newest first.

    Args:
        channel: Channel (or thread) to read
        before: Message id to read strictly before; None for the latest page
        limit: Records to request, clamped to 1..100

    Returns:
        Page of records

    Raises:
        FetchError: If Discord refuses or fails the request
    """
    limit = max(1, min(limit, PAGE_SIZE))
    before_obj = discord.Object(id=before) if before is not None else None
    records: list[PageRecord] = []
    try:
        async for message in channel.history(limit=limit, before=before_obj):
            records.append(to_page_record(message))
    except discord.Forbidden as exc:
        raise FetchError(f"No permission to read history in channel {getattr(channel, 'id', '?')}") from exc
    except discord.HTTPException as exc:
        raise FetchError(
            f"Discord returned {exc.status} reading channel {getattr(channel, 'id', '?')}"
        ) from exc
    except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as exc:
        raise FetchError(
            f"Connection error reading channel {getattr(channel, 'id', '?')}: {exc!r}"
        ) from exc

    _LOG.debug("Fetched %d records before %s", len(records), before)
    return Page(records=tuple(records))
