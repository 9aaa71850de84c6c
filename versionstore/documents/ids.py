"""
Version ids — sortable UTC timestamps.

Format: ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (e.g. ``2024-03-02T10:15:30.123Z``).
Fixed width and zero padded, so string order equals chronological order.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

VERSION_ID_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")

_RESOLUTION = timedelta(milliseconds=1)


def format_version_id(moment: datetime) -> str:
    """Render an aware (or naive UTC) datetime as a version id."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_version_id(version_id: str) -> datetime:
    """
    Parse a version id into an aware UTC datetime.

    Raises ValueError if the string is not a well-formed id.
    """
    if not VERSION_ID_PATTERN.match(version_id):
        raise ValueError(f"Not a version id: {version_id!r}")
    parsed = datetime.strptime(version_id, "%Y-%m-%dT%H:%M:%S.%fZ")
    return parsed.replace(tzinfo=timezone.utc)


def is_version_id(value: str) -> bool:
    try:
        parse_version_id(value)
    except ValueError:
        return False
    return True


def next_version_id(version_id: str) -> str:
    """The smallest id that sorts strictly after *version_id*."""
    return format_version_id(parse_version_id(version_id) + _RESOLUTION)


def new_version_id(now: Optional[datetime] = None, after: Optional[str] = None) -> str:
    """
    Generate an id for a save happening at *now* (default: current time).

    If *after* is given, the result sorts strictly after it even when the
    clock has not advanced past it (same-millisecond save, clock stepped back).
    """
    candidate = format_version_id(now or datetime.now(timezone.utc))
    if after is not None and candidate <= after:
        candidate = next_version_id(after)
    return candidate


def describe_age(version_id: str, now: Optional[datetime] = None) -> str:
    """
    Human-readable age of a version, e.g. ``"5 minutes ago"``.

    Uses moment.js ``fromNow()`` thresholds: under 45 seconds is "a few
    seconds ago", 45 minutes rounds up to "an hour ago", 26 days to "a month
    ago", and so on.
    """
    now = now or datetime.now(timezone.utc)
    seconds = (now - parse_version_id(version_id)).total_seconds()
    if seconds < 0:
        return "in the future"

    minutes = seconds / 60
    hours = minutes / 60
    days = hours / 24

    if seconds < 45:
        return "a few seconds ago"
    if seconds < 90:
        return "a minute ago"
    if minutes < 45:
        return f"{max(2, round(minutes))} minutes ago"
    if minutes < 90:
        return "an hour ago"
    if hours < 22:
        return f"{max(2, round(hours))} hours ago"
    if hours < 36:
        return "a day ago"
    if days < 26:
        return f"{max(2, round(days))} days ago"
    if days < 45:
        return "a month ago"
    if days < 320:
        return f"{max(2, round(days / 30.4))} months ago"
    if days < 548:
        return "a year ago"
    return f"{max(2, round(days / 365))} years ago"
