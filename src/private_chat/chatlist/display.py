"""Presentation helpers for principals, unread counts and timestamps."""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo

from dateutil.relativedelta import relativedelta

NANOS_PER_SECOND = 1_000_000_000


def shorten_principal(principal: str, head: int = 6, tail: int = 4) -> str:
    """Abbreviate a principal as ``head...tail`` when it is long."""
    if len(principal) <= head + tail + 2:
        return principal
    return f"{principal[:head]}...{principal[-tail:]}"


def initials(name: str) -> str:
    """Two-letter avatar initials for a display name."""
    words = name.split()
    if not words:
        return ""
    if len(words) == 1:
        return words[0][:2].upper()
    return (words[0][0] + words[-1][0]).upper()


def unread_badge(count: int | None) -> str | None:
    """Badge text for an unread count, or None when there is nothing unread."""
    if not count or count <= 0:
        return None
    return "9+" if count > 9 else str(count)


def to_datetime(timestamp_ns: int, tz: tzinfo | None = timezone.utc) -> datetime:
    return datetime.fromtimestamp(timestamp_ns / NANOS_PER_SECOND, tz=tz)


def format_clock(timestamp_ns: int, tz: tzinfo | None = None) -> str:
    """``HH:MM`` of a store timestamp, in ``tz`` (local time by default)."""
    moment = to_datetime(timestamp_ns, timezone.utc)
    return moment.astimezone(tz).strftime("%H:%M")


def _distance(minutes: int, months: int) -> str:
    if minutes < 1:
        return "less than a minute"
    if minutes < 45:
        return "1 minute" if minutes == 1 else f"{minutes} minutes"
    if minutes < 90:
        return "about 1 hour"
    if minutes < 24 * 60:
        return f"about {round(minutes / 60)} hours"
    if minutes < 42 * 60:
        return "1 day"
    if minutes < 30 * 24 * 60:
        return f"{round(minutes / (24 * 60))} days"
    if minutes < 60 * 24 * 60:
        month_count = round(minutes / (30 * 24 * 60))
        return f"about {month_count} month{'s' if month_count != 1 else ''}"
    if months < 12:
        return f"{months} months"

    years, rest = divmod(months, 12)
    plural = "s" if years != 1 else ""
    if rest < 3:
        return f"about {years} year{plural}"
    if rest < 9:
        return f"over {years} year{plural}"
    return f"almost {years + 1} years"


def time_ago(timestamp_ns: int, now: datetime | None = None) -> str:
    """Relative phrase such as ``"5 minutes ago"`` or ``"in about 1 hour"``."""
    moment = to_datetime(timestamp_ns)
    now = now or datetime.now(timezone.utc)
    earlier, later = sorted((moment, now))
    minutes = round((later - earlier).total_seconds() / 60)
    delta = relativedelta(later, earlier)
    months = delta.years * 12 + delta.months
    phrase = _distance(minutes, months)
    return f"{phrase} ago" if moment <= now else f"in {phrase}"
