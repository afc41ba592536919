"""Relative date/time resolution in a fixed home timezone.

Turns expressions such as ``"tomorrow"``, ``"friday 2pm"`` or
``"next monday at 9:30am"`` into timezone-aware datetimes, and builds the
day and lookahead windows used when reading the calendar.

All computations take an explicit :class:`zoneinfo.ZoneInfo`; the host
process's local timezone is never consulted.  Naive reference datetimes
are interpreted as wall-clock time in that zone.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

WEEKDAYS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
"""Weekday names indexed like :meth:`datetime.date.weekday` (Monday = 0)."""

WEEK_DAYS = 7
MONTH_DAYS = 30

_WEEKDAY_RE = re.compile(r"\b(next\s+)?(" + "|".join(WEEKDAYS) + r")\b")
_TODAY_RE = re.compile(r"\btoday\b")
_TOMORROW_RE = re.compile(r"\btomorrow\b")

# "2pm", "3:30 pm", "14:00", "12am".  A bare number is not a time.
_TIME_RE = re.compile(r"(?<![\d:])(\d{1,2})(?::(\d{2}))?(?:\s*(am|pm)\b)?(?![\d:])")


# ---------------------------------------------------------------------------
# Reference handling
# ---------------------------------------------------------------------------


def now_in(zone: ZoneInfo) -> datetime:
    """Return the current time as an aware datetime in *zone*."""
    return datetime.now(zone)


def localize(moment: datetime, zone: ZoneInfo) -> datetime:
    """Express *moment* in *zone*.

    Naive datetimes are taken as wall-clock time in *zone*; aware
    datetimes are converted.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=zone)
    return moment.astimezone(zone)


# ---------------------------------------------------------------------------
# Day tokens
# ---------------------------------------------------------------------------


def weekday_index(name: str) -> int | None:
    """Return the Monday-based index of a weekday name, or ``None``."""
    try:
        return WEEKDAYS.index(name.strip().lower())
    except ValueError:
        return None


def next_weekday(day: str | int, reference: date) -> date:
    """Return the next occurrence of *day* strictly after *reference*.

    The offset is ``(D - R) mod 7`` with zero promoted to seven, so asking
    for ``"friday"`` on a Friday yields the Friday one week later.

    Args:
        day: Weekday name (``"friday"``) or Monday-based index.
        reference: The day to count from.

    Returns:
        A date 1 to 7 days after *reference*.

    Raises:
        ValueError: If *day* is not a weekday name or index.
    """
    index = weekday_index(day) if isinstance(day, str) else day
    if index is None or not 0 <= index < WEEK_DAYS:
        raise ValueError(f"Unknown weekday: {day!r}")

    offset = (index - reference.weekday()) % WEEK_DAYS or WEEK_DAYS
    return reference + timedelta(days=offset)


def resolve_day(expression: str, reference: date) -> tuple[date, bool]:
    """Resolve the day part of *expression* relative to *reference*.

    Recognises ``today``, ``tomorrow``, weekday names and a ``next``
    prefix on a weekday.  ``next <weekday>`` adds seven days to the
    already-resolved occurrence.

    Args:
        expression: Free text such as ``"next friday at 2pm"``.
        reference: The reference date in the home timezone.

    Returns:
        A ``(day, matched)`` tuple.  When no day token is recognised the
        reference date is returned unchanged with ``matched`` set to
        ``False``; callers should treat that as a soft default.
    """
    text = expression.lower()

    if _TODAY_RE.search(text):
        return reference, True
    if _TOMORROW_RE.search(text):
        return reference + timedelta(days=1), True

    match = _WEEKDAY_RE.search(text)
    if match is not None:
        resolved = next_weekday(match.group(2), reference)
        if match.group(1):
            resolved += timedelta(days=WEEK_DAYS)
        return resolved, True

    return reference, False


# ---------------------------------------------------------------------------
# Time of day
# ---------------------------------------------------------------------------


def parse_time_of_day(text: str) -> time | None:
    """Parse the first time-of-day expression in *text*.

    ``pm`` with an hour below 12 adds 12 hours; ``am`` with hour 12 maps to
    midnight.  A number needs either minutes (``14:00``) or a meridiem
    (``2pm``) to count as a time.

    Returns:
        A naive :class:`datetime.time`, or ``None`` if no valid time is found.
    """
    for match in _TIME_RE.finditer(text.lower()):
        hours_text, minutes_text, meridiem = match.groups()
        if minutes_text is None and meridiem is None:
            continue

        hours = int(hours_text)
        minutes = int(minutes_text) if minutes_text is not None else 0

        if meridiem is not None and not 1 <= hours <= 12:
            continue
        if meridiem == "pm" and hours < 12:
            hours += 12
        elif meridiem == "am" and hours == 12:
            hours = 0

        if hours > 23 or minutes > 59:
            continue
        return time(hours, minutes)

    return None


# ---------------------------------------------------------------------------
# Full resolution
# ---------------------------------------------------------------------------


def resolve(expression: str, reference: datetime, zone: ZoneInfo) -> datetime:
    """Resolve a relative day/time *expression* to an aware datetime.

    The result starts at midnight of the reference day in *zone*, moves to
    the day named by the expression, and takes the expression's time of
    day if one is present.

    Examples (reference Saturday 2024-11-23)::

        resolve("tomorrow at 2pm", ref, zone)  # 2024-11-24 14:00
        resolve("friday", ref, zone)           # 2024-11-29 00:00
        resolve("next friday", ref, zone)      # 2024-12-06 00:00

    Never raises for unrecognised input: an unknown day token leaves the
    reference date in place and a missing time leaves midnight.
    """
    local_reference = localize(reference, zone)
    day, matched = resolve_day(expression, local_reference.date())
    if not matched:
        logger.debug("No day token in %r, defaulting to %s", expression, day)

    moment = parse_time_of_day(expression) or time(0, 0)
    return datetime.combine(day, moment, tzinfo=zone)


def resolve_weekday(name: str, reference: datetime, zone: ZoneInfo) -> date:
    """Resolve a ``specificDay`` value such as ``"friday"`` or ``"next friday"``.

    Unknown names fall back to the reference date with a warning.
    """
    local_reference = localize(reference, zone)
    day, matched = resolve_day(name, local_reference.date())
    if not matched:
        logger.warning("Unrecognised day %r, using %s", name, day)
    return day


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


def day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """Return the inclusive ``[start, end]`` of *day* in *zone*.

    The window runs from local midnight to 23:59:59.999999.
    """
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day, time.max, tzinfo=zone)
    return start, end


def lookahead_window(now: datetime, days: int) -> tuple[datetime, datetime]:
    """Return ``[now, now + days]``."""
    return now, now + timedelta(days=days)
