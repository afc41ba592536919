"""Async Google Calendar client for the chat orchestrator.

Provides :class:`GoogleCalendarClient`, a thin wrapper around the Google
Calendar API v3 ``events`` resource:

- **Read** -- list events in a window, ordered by start time, paginated
  up to a cap.
- **Search** -- list events in a window whose summary, location or
  description contain a query.
- **Create / Update / Delete** -- write by event body or ID.

``googleapiclient`` is synchronous, so every request runs in a worker
thread via :func:`asyncio.to_thread`.  All public methods translate HTTP and
network failures into :class:`~cal_chat.calendar.exceptions.CalendarError`
through :func:`~cal_chat.calendar.exceptions.translate_http_errors`.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Protocol

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from cal_chat.calendar.event_mapper import matches_query, to_google_body, to_google_patch
from cal_chat.calendar.exceptions import translate_http_errors
from cal_chat.models.intent import EventFields

logger = logging.getLogger(__name__)

# Google Calendar API calendar identifier for the primary calendar.
_PRIMARY_CALENDAR = "primary"

# Largest page the events.list endpoint accepts.
_MAX_PAGE_SIZE = 250


class CalendarCapability(Protocol):
    """Calendar operations the orchestrator depends on.

    All methods raise :class:`~cal_chat.calendar.exceptions.CalendarError`
    on provider or network failure.
    """

    async def list_events(
        self,
        time_min: datetime,
        time_max: datetime,
        max_results: int,
    ) -> list[dict[str, Any]]: ...

    async def search_events(
        self,
        query: str,
        time_min: datetime,
        time_max: datetime,
    ) -> list[dict[str, Any]]: ...

    async def create_event(self, fields: EventFields) -> dict[str, Any]: ...

    async def update_event(self, event_id: str, fields: EventFields) -> dict[str, Any]: ...

    async def delete_event(self, event_id: str) -> None: ...


class GoogleCalendarClient:
    """Google Calendar implementation of :class:`CalendarCapability`.

    Args:
        credentials: Valid Google OAuth 2.0 credentials for one user.
        timezone: IANA timezone name attached to timed event values.
        service: Optional pre-built ``googleapiclient`` service resource.
            If ``None``, one is built from *credentials*.  Pass a mock here
            in tests.
    """

    def __init__(
        self,
        credentials: Credentials,
        timezone: str,
        service: Any | None = None,
    ) -> None:
        self._credentials = credentials
        self._timezone = timezone
        self._service = service or build(
            "calendar", "v3", credentials=credentials, cache_discovery=False
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @translate_http_errors
    async def list_events(
        self,
        time_min: datetime,
        time_max: datetime,
        max_results: int,
    ) -> list[dict[str, Any]]:
        """List up to *max_results* events in ``[time_min, time_max]``.

        Args:
            time_min: Start of the window (aware).
            time_max: End of the window (aware).
            max_results: Upper bound on returned events.

        Returns:
            Google Calendar event resource dicts in start-time order.
        """
        events = await asyncio.to_thread(
            self._list_events_raw, time_min, time_max, max_results
        )
        logger.info(
            "Listed %d event(s) between %s and %s",
            len(events),
            time_min.isoformat(),
            time_max.isoformat(),
        )
        return events

    @translate_http_errors
    async def search_events(
        self,
        query: str,
        time_min: datetime,
        time_max: datetime,
    ) -> list[dict[str, Any]]:
        """Find events in the window whose text fields contain *query*.

        Returns:
            Matching event dicts in start-time order (possibly empty).
        """
        events = await asyncio.to_thread(self._list_events_raw, time_min, time_max, None)
        matches = [event for event in events if matches_query(event, query)]
        logger.info(
            "Search for '%s' matched %d of %d event(s)",
            query,
            len(matches),
            len(events),
        )
        return matches

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @translate_http_errors
    async def create_event(self, fields: EventFields) -> dict[str, Any]:
        """Insert a new event on the primary calendar.

        Returns:
            The API response ``dict`` for the created event.
        """
        body = to_google_body(fields, self._timezone)
        result = await asyncio.to_thread(
            self._service.events().insert(calendarId=_PRIMARY_CALENDAR, body=body).execute
        )
        logger.info("Created event '%s' (id=%s)", fields.summary, result.get("id", "?"))
        return result

    @translate_http_errors
    async def update_event(self, event_id: str, fields: EventFields) -> dict[str, Any]:
        """Patch the writable fields of an existing event.

        Sent as ``events().patch()``, so attendees, reminders, conference
        data and recurrence on the stored event are kept.

        Raises:
            CalendarNotFoundError: If the event ID does not exist.
        """
        body = to_google_patch(fields, self._timezone)
        result = await asyncio.to_thread(
            self._service.events()
            .patch(calendarId=_PRIMARY_CALENDAR, eventId=event_id, body=body)
            .execute
        )
        logger.info("Updated event '%s' (id=%s)", fields.summary, event_id)
        return result

    @translate_http_errors
    async def delete_event(self, event_id: str) -> None:
        """Delete an event by its ID.

        Raises:
            CalendarNotFoundError: If the event ID does not exist.
        """
        await asyncio.to_thread(
            self._service.events().delete(calendarId=_PRIMARY_CALENDAR, eventId=event_id).execute
        )
        logger.info("Deleted event (id=%s)", event_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _list_events_raw(
        self,
        time_min: datetime,
        time_max: datetime,
        limit: int | None,
    ) -> list[dict[str, Any]]:
        """Fetch events from the API, following pages until *limit* is reached.

        Runs in a worker thread.  ``limit=None`` fetches every page.
        """
        all_events: list[dict[str, Any]] = []
        page_token: str | None = None

        while True:
            page_size = _MAX_PAGE_SIZE
            if limit is not None:
                page_size = min(page_size, limit - len(all_events))

            response = (
                self._service.events()
                .list(
                    calendarId=_PRIMARY_CALENDAR,
                    timeMin=time_min.isoformat(),
                    timeMax=time_max.isoformat(),
                    maxResults=page_size,
                    singleEvents=True,
                    orderBy="startTime",
                    pageToken=page_token,
                )
                .execute()
            )

            all_events.extend(response.get("items", []))

            page_token = response.get("nextPageToken")
            if page_token is None or (limit is not None and len(all_events) >= limit):
                break

        if limit is not None:
            return all_events[:limit]
        return all_events
