"""Calendar operation orchestrator.

Takes a classified :class:`~cal_chat.models.intent.Intent` and a user
identity, and runs the matching calendar operation:

1. **Validate** the action's required parameters (no external call on
   failure).
2. **Resolve credentials** through the credential store, refreshing them
   if expired.  A user without credentials gets a ``not_linked`` result
   and the calendar is never touched.
3. **Execute** one read, create, update or delete against the calendar
   capability, with every external call bounded by ``call_timeout``.

Every path returns an :class:`~cal_chat.models.result.OperationResult`;
nothing is raised past :meth:`CalendarOrchestrator.execute`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timedelta
from typing import TypeVar
from zoneinfo import ZoneInfo

from google.oauth2.credentials import Credentials

from cal_chat import dates
from cal_chat.calendar.client import CalendarCapability
from cal_chat.calendar.credentials import CredentialStore
from cal_chat.calendar.event_mapper import is_date_only, merge_updates, parse_moment
from cal_chat.calendar.exceptions import CalendarError, CalendarTimeoutError
from cal_chat.models.intent import (
    CreateEventParams,
    DeleteEventParams,
    EventFields,
    Intent,
    ReadEventsParams,
    UpdateEventParams,
)
from cal_chat.models.result import OperationResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

CalendarFactory = Callable[[Credentials], CalendarCapability]

NOT_LINKED_MESSAGE = (
    "Your Google Calendar isn't linked yet. Link your calendar first, then try again."
)

_DEFAULT_DURATION = timedelta(hours=1)


class _ValidationFailure(Exception):
    """A required parameter is missing or unusable."""


class _NotLinked(Exception):
    """No credentials are stored for the user."""


class CalendarOrchestrator:
    """Executes classified intents against a user's calendar.

    Args:
        credential_store: Source of per-user OAuth credentials.
        calendar_factory: Builds a calendar capability from credentials.
        timezone: Home timezone for every window and default.
        call_timeout: Seconds allowed for each credential or calendar call.
        max_results: Cap on events returned by a read.
        search_window_days: Days ahead of today searched by update/delete.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        calendar_factory: CalendarFactory,
        timezone: ZoneInfo,
        call_timeout: float = 30.0,
        max_results: int = 10,
        search_window_days: int = 30,
    ) -> None:
        self._credential_store = credential_store
        self._calendar_factory = calendar_factory
        self._timezone = timezone
        self._call_timeout = call_timeout
        self._max_results = max_results
        self._search_window_days = search_window_days

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def execute(
        self,
        intent: Intent,
        user_id: str,
        now: datetime | None = None,
    ) -> OperationResult:
        """Run *intent* for *user_id*.

        Args:
            intent: The classified intent.  ``unknown`` is rejected as a
                validation failure.
            user_id: The chat identity whose calendar is used.
            now: Reference instant.  Defaults to the current time in the
                home timezone; naive values are local wall time.

        Returns:
            The operation outcome.  Never raises.
        """
        now = dates.localize(now, self._timezone) if now else dates.now_in(self._timezone)
        params = intent.parameters

        try:
            if isinstance(params, ReadEventsParams):
                return await self._read_events(params, user_id, now)
            if isinstance(params, CreateEventParams):
                return await self._create_event(params, user_id)
            if isinstance(params, UpdateEventParams):
                return await self._update_event(params, user_id, now)
            if isinstance(params, DeleteEventParams):
                return await self._delete_event(params, user_id, now)
            raise _ValidationFailure(f"Unsupported action: {intent.action}")
        except _ValidationFailure as exc:
            logger.info("Validation failed for %s: %s", intent.action, exc)
            return OperationResult.fail("validation", str(exc))
        except _NotLinked:
            logger.info("User %s has no linked calendar", user_id)
            return OperationResult.fail("not_linked", NOT_LINKED_MESSAGE)
        except CalendarError as exc:
            logger.error("Calendar operation %s failed: %s", intent.action, exc)
            return OperationResult.fail("calendar", str(exc))
        except Exception as exc:
            logger.exception("Unexpected error during %s", intent.action)
            return OperationResult.fail("calendar", f"Unexpected error: {exc}")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def _read_events(
        self,
        params: ReadEventsParams,
        user_id: str,
        now: datetime,
    ) -> OperationResult:
        time_min, time_max = self._read_window(params, now)
        calendar = await self._calendar_for(user_id)

        logger.info(
            "Fetching events from %s to %s",
            time_min.isoformat(),
            time_max.isoformat(),
        )
        events = await self._bounded(
            calendar.list_events(time_min, time_max, self._max_results),
            "Listing events",
        )
        return OperationResult(success=True, events=events, count=len(events))

    async def _create_event(
        self,
        params: CreateEventParams,
        user_id: str,
    ) -> OperationResult:
        if not params.summary:
            raise _ValidationFailure("Event title is required")
        if not params.start_date_time:
            raise _ValidationFailure("Event start time is required")

        start = params.start_date_time
        end = params.end_date_time or _default_end(start)
        self._check_order(start, end)

        fields = EventFields(
            summary=params.summary,
            location=params.location or None,
            description=params.description or None,
            start=start,
            end=end,
        )
        logger.info("Creating event: %s", fields.model_dump(exclude_none=True))

        calendar = await self._calendar_for(user_id)
        created = await self._bounded(
            calendar.create_event(fields), "Creating the event", write=True
        )
        return OperationResult(success=True, created_event=created)

    async def _update_event(
        self,
        params: UpdateEventParams,
        user_id: str,
        now: datetime,
    ) -> OperationResult:
        if not params.search_query:
            raise _ValidationFailure("Please specify which event to update")
        if params.updates is None or params.updates.is_empty():
            raise _ValidationFailure("Please specify what to change")

        calendar = await self._calendar_for(user_id)
        match = await self._first_match(calendar, params.search_query, now)
        if match is None:
            return _no_match(params.search_query)

        try:
            fields = merge_updates(match, params.updates, self._timezone)
        except ValueError as exc:
            raise _ValidationFailure(str(exc)) from exc

        updated = await self._bounded(
            calendar.update_event(match["id"], fields),
            "Updating the event",
            write=True,
        )
        return OperationResult(success=True, updated_event=updated)

    async def _delete_event(
        self,
        params: DeleteEventParams,
        user_id: str,
        now: datetime,
    ) -> OperationResult:
        if not params.search_query:
            raise _ValidationFailure("Please specify which event to delete")

        calendar = await self._calendar_for(user_id)
        match = await self._first_match(calendar, params.search_query, now)
        if match is None:
            return _no_match(params.search_query)

        await self._bounded(
            calendar.delete_event(match["id"]), "Deleting the event", write=True
        )
        return OperationResult(success=True, deleted_event=match)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_window(
        self,
        params: ReadEventsParams,
        now: datetime,
    ) -> tuple[datetime, datetime]:
        """Pick the read window by precedence: date, specificDay, dateRange, today."""
        if params.date:
            return dates.day_bounds(_parse_day(params.date), self._timezone)
        if params.specific_day:
            day = dates.resolve_weekday(params.specific_day, now, self._timezone)
            return dates.day_bounds(day, self._timezone)
        if params.date_range == "week":
            return dates.lookahead_window(now, dates.WEEK_DAYS)
        if params.date_range == "month":
            return dates.lookahead_window(now, dates.MONTH_DAYS)
        return dates.day_bounds(now.date(), self._timezone)

    def _check_order(self, start: str, end: str) -> None:
        try:
            start_at = parse_moment(start, self._timezone)
            end_at = parse_moment(end, self._timezone)
        except ValueError as exc:
            raise _ValidationFailure(f"Invalid event time: {exc}") from exc
        if end_at <= start_at:
            raise _ValidationFailure("Event end time must be after the start time")

    async def _calendar_for(self, user_id: str) -> CalendarCapability:
        """Resolve credentials for *user_id* and build its calendar capability."""
        creds = await self._bounded(
            self._credential_store.get(user_id),
            "Loading credentials",
        )
        if creds is None:
            raise _NotLinked(user_id)

        creds = await self._bounded(
            self._credential_store.refresh_if_expired(user_id, creds),
            "Refreshing credentials",
        )
        return self._calendar_factory(creds)

    async def _first_match(
        self,
        calendar: CalendarCapability,
        query: str,
        now: datetime,
    ) -> dict | None:
        """Search the visible window and return the first event in provider order."""
        window_start, _ = dates.day_bounds(now.date(), self._timezone)
        window_end = window_start + timedelta(days=self._search_window_days)

        matches = await self._bounded(
            calendar.search_events(query, window_start, window_end),
            "Searching events",
        )
        if not matches:
            logger.info("No events matched '%s'", query)
            return None
        if len(matches) > 1:
            logger.info(
                "%d events matched '%s'; using the first ('%s')",
                len(matches),
                query,
                matches[0].get("summary", "?"),
            )
        return matches[0]

    async def _bounded(self, awaitable: Awaitable[T], what: str, write: bool = False) -> T:
        """Await *awaitable* under the per-call timeout.

        The worker thread behind a calendar call is not interrupted by the
        timeout, so a timed-out write may still reach the provider.  Its
        error says so.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self._call_timeout)
        except asyncio.TimeoutError as exc:
            message = f"{what} timed out after {self._call_timeout:g}s"
            if write:
                logger.warning("%s; the outcome of the write is unknown", message)
                message += ". The change may still have gone through, so check your calendar"
            raise CalendarTimeoutError(message) from exc


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _no_match(query: str) -> OperationResult:
    return OperationResult.fail("not_found", f'No events found matching "{query}"')


def _parse_day(value: str) -> date:
    """Parse a ``date`` parameter, accepting a full datetime as well."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError as exc:
        raise _ValidationFailure(f"Invalid date: {value}") from exc


def _default_end(start: str) -> str:
    """Return the default end for *start*: one hour later, or the next day if all-day.

    The offset of *start*, if any, is preserved.
    """
    if is_date_only(start):
        return (date.fromisoformat(start) + timedelta(days=1)).isoformat()
    try:
        start_at = datetime.fromisoformat(start.replace("Z", "+00:00"))
    except ValueError as exc:
        raise _ValidationFailure(f"Invalid event start time: {start}") from exc
    return (start_at + _DEFAULT_DURATION).isoformat(timespec="seconds")
