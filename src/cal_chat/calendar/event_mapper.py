"""Map between event fields and the Google Calendar API body format.

- :func:`to_google_body` converts :class:`~cal_chat.models.intent.EventFields`
  into a ``dict`` for ``events().insert()``.
- :func:`to_google_patch` builds the partial body for ``events().patch()``,
  which leaves attendees, reminders, recurrence and other unlisted keys
  untouched.
- :func:`fields_from_event` reads the writable fields back out of a Google
  event resource.
- :func:`merge_updates` applies an update request to an existing event.
- :func:`matches_query` decides whether an event answers a search.

Timed values without an offset are sent with the home timezone name so the
provider interprets them as local wall-clock time.  Bare dates map to
all-day ``date`` values.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from cal_chat.dates import parse_time_of_day
from cal_chat.models.intent import EventFields, EventUpdates

logger = logging.getLogger(__name__)

DEFAULT_DURATION = timedelta(hours=1)


def to_google_body(fields: EventFields, timezone: str) -> dict[str, Any]:
    """Convert event fields into a Google Calendar API event body.

    Args:
        fields: The event to write.
        timezone: IANA timezone name attached to timed values.

    Returns:
        A ``dict`` conforming to the Google Calendar Event resource schema.
    """
    body: dict[str, Any] = {
        "summary": fields.summary,
        "start": _format_moment(fields.start, timezone),
        "end": _format_moment(fields.end, timezone),
    }
    if fields.location:
        body["location"] = fields.location
    if fields.description:
        body["description"] = fields.description

    logger.debug(
        "Mapped event '%s' (%s -> %s) to Google Calendar body",
        fields.summary,
        fields.start,
        fields.end,
    )
    return body


def to_google_patch(fields: EventFields, timezone: str) -> dict[str, Any]:
    """Build an ``events().patch()`` body for *fields*.

    Only the writable keys are sent.  Text fields set to ``""`` are sent so
    they clear, and the unused half of ``start`` / ``end`` is nulled so an
    event can switch between all-day and timed.
    """
    body = to_google_body(fields, timezone)
    for key in ("location", "description"):
        value = getattr(fields, key)
        if value is not None:
            body[key] = value
    for key in ("start", "end"):
        if "date" in body[key]:
            body[key]["dateTime"] = None
        else:
            body[key]["date"] = None
    return body


def fields_from_event(event: dict[str, Any]) -> EventFields:
    """Extract the writable fields of a Google Calendar event resource."""
    start_obj = event.get("start", {})
    end_obj = event.get("end", {})
    return EventFields(
        summary=event.get("summary", ""),
        location=event.get("location"),
        description=event.get("description"),
        start=start_obj.get("dateTime") or start_obj.get("date", ""),
        end=end_obj.get("dateTime") or end_obj.get("date", ""),
    )


def matches_query(event: dict[str, Any], query: str) -> bool:
    """Whether *query* occurs in the event's summary, location or description.

    The comparison is case-insensitive and ignores surrounding whitespace.
    An empty query matches nothing.
    """
    needle = query.strip().lower()
    if not needle:
        return False
    haystacks = (event.get(key) or "" for key in ("summary", "location", "description"))
    return any(needle in text.lower() for text in haystacks)


def merge_updates(
    event: dict[str, Any],
    updates: EventUpdates,
    timezone: ZoneInfo,
) -> EventFields:
    """Apply *updates* on top of the fields of an existing *event*.

    - Text fields replace the originals when given.
    - A start or end that is only a time of day (``"15:00"``, ``"3pm"``)
      keeps the event's current date.
    - A new start without a new end keeps the original duration (one hour
      when the original duration cannot be determined).
    - An all-day event given a time becomes a one-hour timed event; given
      a new date it stays all-day and keeps its span of days.

    Args:
        event: The matched Google Calendar event resource.
        updates: The requested changes.
        timezone: Home timezone used to read the event's times.

    Returns:
        The full field set to write back.

    Raises:
        ValueError: If an updated start or end cannot be understood, or the
            resulting end is not after the start.
    """
    current = fields_from_event(event)
    merged = current.model_copy()

    if updates.summary is not None:
        merged.summary = updates.summary
    if updates.location is not None:
        merged.location = updates.location
    if updates.description is not None:
        merged.description = updates.description

    if updates.start_date_time is None and updates.end_date_time is None:
        return merged

    all_day = bool(current.start) and is_date_only(current.start)
    if (
        all_day
        and updates.end_date_time is None
        and updates.start_date_time is not None
        and is_date_only(updates.start_date_time)
    ):
        return _move_all_day(merged, updates.start_date_time)

    old_start = parse_moment(current.start, timezone) if current.start else None
    old_end = parse_moment(current.end, timezone) if current.end else None

    start = old_start
    if updates.start_date_time is not None:
        start = _apply_moment(updates.start_date_time, old_start, timezone)

    if updates.end_date_time is not None:
        anchor = start if all_day else (old_end or start)
        end = _apply_moment(updates.end_date_time, anchor, timezone)
    elif all_day:
        end = start + DEFAULT_DURATION  # type: ignore[operator]
    elif old_start is not None and old_end is not None and old_end > old_start:
        end = start + (old_end - old_start)  # type: ignore[operator]
    else:
        end = start + DEFAULT_DURATION  # type: ignore[operator]

    if start is None or end is None:
        raise ValueError("The event has no start time to update")
    if end <= start:
        raise ValueError("The event must end after it starts")

    merged.start = format_local(start)
    merged.end = format_local(end)
    return merged


# ---------------------------------------------------------------------------
# Datetime helpers
# ---------------------------------------------------------------------------


def is_date_only(value: str) -> bool:
    """Whether *value* is a bare ISO date such as ``"2024-11-24"``."""
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_moment(value: str, timezone: ZoneInfo) -> datetime:
    """Parse an ISO date or datetime string into an aware datetime in *timezone*.

    Bare dates become local midnight; naive datetimes are local wall time.

    Raises:
        ValueError: If *value* is not ISO 8601.
    """
    if is_date_only(value):
        return datetime.combine(date.fromisoformat(value), datetime.min.time(), tzinfo=timezone)

    moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone)
    return moment.astimezone(timezone)


def format_local(moment: datetime) -> str:
    """Format *moment* as a local ISO datetime without an offset."""
    return moment.replace(tzinfo=None).isoformat(timespec="seconds")


def _apply_moment(
    value: str,
    anchor: datetime | None,
    timezone: ZoneInfo,
) -> datetime:
    """Resolve an updated start/end that may be a full datetime or only a time."""
    try:
        return parse_moment(value, timezone)
    except ValueError:
        pass

    moment = parse_time_of_day(value)
    if moment is None or anchor is None:
        raise ValueError(f"Could not understand the time {value!r}")
    return anchor.replace(hour=moment.hour, minute=moment.minute, second=0, microsecond=0)


def _move_all_day(merged: EventFields, new_start: str) -> EventFields:
    """Move an all-day event to *new_start*, keeping its span of days."""
    old_start = date.fromisoformat(merged.start)
    span = timedelta(days=1)
    if merged.end and is_date_only(merged.end):
        span = max(date.fromisoformat(merged.end) - old_start, span)
    start = date.fromisoformat(new_start)
    merged.start = start.isoformat()
    merged.end = (start + span).isoformat()
    return merged


def _format_moment(value: str, timezone: str) -> dict[str, str]:
    """Format a start/end value for the Google Calendar API.

    Returns:
        ``{"date": ...}`` for all-day values, otherwise ``{"dateTime": ...,
        "timeZone": ...}``.
    """
    if is_date_only(value):
        return {"date": value}
    return {"dateTime": value, "timeZone": timezone}
