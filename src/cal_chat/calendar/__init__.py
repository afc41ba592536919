"""Google Calendar integration for cal-chat."""

from __future__ import annotations

from cal_chat.calendar.client import CalendarCapability, GoogleCalendarClient
from cal_chat.calendar.credentials import SCOPES, CredentialStore, JsonCredentialStore
from cal_chat.calendar.event_mapper import (
    fields_from_event,
    matches_query,
    merge_updates,
    to_google_body,
    to_google_patch,
)
from cal_chat.calendar.exceptions import (
    CalendarAuthError,
    CalendarError,
    CalendarNotFoundError,
    CalendarRateLimitError,
    CalendarTimeoutError,
)

__all__ = [
    "SCOPES",
    "CalendarAuthError",
    "CalendarCapability",
    "CalendarError",
    "CalendarNotFoundError",
    "CalendarRateLimitError",
    "CalendarTimeoutError",
    "CredentialStore",
    "GoogleCalendarClient",
    "JsonCredentialStore",
    "fields_from_event",
    "matches_query",
    "merge_updates",
    "to_google_body",
    "to_google_patch",
]
