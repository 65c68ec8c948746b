"""Time window resolution for summary requests."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ..errors import ValidationError

MAX_LOOKBACK_HOURS = 24

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class TimeWindow:
    """A ``(start, end]`` interval that messages are filtered against.

    Both ends are timezone-aware. ``label`` describes how the window was
    picked and is only used for display.
    """

    start: datetime
    end: datetime
    label: str = field(default="", compare=False)

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end

    def contains(self, timestamp: datetime) -> bool:
        """Return True if *timestamp* is after ``start`` and not after ``end``."""
        return self.start < timestamp <= self.end


def _local_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now().astimezone()
    if now.tzinfo is None:
        return now.astimezone()
    return now


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ValidationError(f"{name} must be between {low} and {high} (got {value})")


def resolve_last(hours: int, minutes: int, now: datetime | None = None) -> TimeWindow:
    """
    Resolve a relative window covering the last ``hours`` and ``minutes``.

    Args:
        hours: Hours to look back (0-24)
        minutes: Minutes to look back (0-59)
        now: Current instant; defaults to the local clock

    Returns:
        TimeWindow ending at ``now``
    """
    _check_range("hours", hours, 0, MAX_LOOKBACK_HOURS)
    _check_range("minutes", minutes, 0, 59)
    end = _local_now(now)
    start = end - timedelta(hours=hours, minutes=minutes)
    return TimeWindow(start=start, end=end, label=f"the last {hours}h {minutes}m")


def resolve_since(hour: int, minute: int, now: datetime | None = None) -> TimeWindow:
    """
    Resolve a window from today's ``hour:minute`` up to now.

    A start later than ``now`` is kept as-is; the window is then empty and
    retrieval finds nothing. Without an aware ``now``, the start gets the
    local UTC offset in effect at that wall time, not the current one.
    """
    _check_range("hour", hour, 0, 23)
    _check_range("minute", minute, 0, 59)
    end = _local_now(now)
    if now is not None and now.tzinfo is not None:
        start = end.replace(hour=hour, minute=minute, second=0, microsecond=0)
    else:
        # fixed offset from astimezone() may differ across a DST change
        wall = end.replace(tzinfo=None, hour=hour, minute=minute, second=0, microsecond=0)
        start = wall.astimezone()
    return TimeWindow(start=start, end=end, label=f"since {hour:02d}:{minute:02d} today")


def _parse_local(date_text: str, hour: int, minute: int, which: str) -> datetime:
    _check_range(f"{which} hour", hour, 0, 23)
    _check_range(f"{which} minute", minute, 0, 59)
    message = f"{which} date {date_text!r} is not a valid YYYY-MM-DD date"
    date_text = date_text.strip()
    if not _DATE_RE.match(date_text):
        raise ValidationError(message)
    try:
        day = datetime.strptime(date_text, "%Y-%m-%d")
    except ValueError as exc:
        raise ValidationError(message) from exc
    # naive -> local zone
    return day.replace(hour=hour, minute=minute).astimezone()


def resolve_range(
    start_date: str,
    start_hour: int,
    start_minute: int,
    end_date: str,
    end_hour: int,
    end_minute: int,
) -> TimeWindow:
    """
    Resolve an absolute window between two local date/times.

    Args:
        start_date: Start date as YYYY-MM-DD
        start_hour: Start hour (0-23)
        start_minute: Start minute (0-59)
        end_date: End date as YYYY-MM-DD
        end_hour: End hour (0-23)
        end_minute: End minute (0-59)

    Returns:
        TimeWindow between the two instants

    Raises:
        ValidationError: If either endpoint cannot be parsed or the end is
            before the start
    """
    start = _parse_local(start_date, start_hour, start_minute, "start")
    end = _parse_local(end_date, end_hour, end_minute, "end")
    if end < start:
        raise ValidationError("end time is before start time")

    fmt = "%Y-%m-%d %H:%M"
    return TimeWindow(start=start, end=end, label=f"{start:{fmt}} to {end:{fmt}}")
