"""Custom exceptions and error translation for calendar operations.

Defines a hierarchy of calendar-specific exceptions and a
``@translate_http_errors`` decorator that maps Google API and network
failures onto it.  Calls are not retried; a failure surfaces once as a
:class:`CalendarError` and the orchestrator reports it to the user.

Exception hierarchy::

    CalendarError              (base for all calendar failures)
    +-- CalendarAuthError      (authentication / 401 / refresh failures)
    +-- CalendarRateLimitError (HTTP 429 rate-limit responses)
    +-- CalendarNotFoundError  (HTTP 404 on update/delete)
    +-- CalendarTimeoutError   (a call exceeded its time budget)
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from httplib2 import HttpLib2Error

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------


class CalendarError(Exception):
    """Base exception for calendar provider errors.

    Attributes:
        status_code: HTTP status code from the API, or ``None`` if the
            error did not originate from an HTTP response.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CalendarAuthError(CalendarError):
    """Raised when calendar authentication fails.

    Covers HTTP 401 responses and token refresh failures.
    """

    def __init__(self, message: str = "Calendar authentication failed") -> None:
        super().__init__(message, status_code=401)


class CalendarRateLimitError(CalendarError):
    """Raised when the Calendar API returns HTTP 429 (rate limit exceeded)."""

    def __init__(self, message: str = "Calendar API rate limit exceeded") -> None:
        super().__init__(message, status_code=429)


class CalendarNotFoundError(CalendarError):
    """Raised when a calendar resource is not found (HTTP 404).

    Typically occurs when updating or deleting an event that no longer exists.
    """

    def __init__(self, message: str = "Calendar resource not found") -> None:
        super().__init__(message, status_code=404)


class CalendarTimeoutError(CalendarError):
    """Raised when a calendar or credential call exceeds its timeout."""

    def __init__(self, message: str = "Calendar request timed out") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


def _classify_http_error(error: HttpError) -> CalendarError:
    """Map an ``HttpError`` to the appropriate calendar exception.

    Args:
        error: The ``googleapiclient.errors.HttpError`` to classify.

    Returns:
        A :class:`CalendarError` subclass matching the HTTP status code.
    """
    status = error.resp.status

    if status == 404:
        return CalendarNotFoundError(str(error))
    if status == 429:
        return CalendarRateLimitError(str(error))
    if status == 401:
        return CalendarAuthError(str(error))
    return CalendarError(str(error), status_code=status)


def translate_http_errors(func: F) -> F:
    """Decorate an async calendar method so failures raise :class:`CalendarError`.

    - ``HttpError`` is classified by status code.
    - ``OSError`` / ``TimeoutError`` and ``httplib2`` transport errors
      (network problems, DNS failures) become a plain :class:`CalendarError`.
    - ``google.auth`` failures raised mid-request (token refresh or auth
      transport) become :class:`CalendarAuthError`.
    - :class:`CalendarError` raised by the method passes through unchanged.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except HttpError as exc:
            cal_error = _classify_http_error(exc)
            logger.error(
                "Calendar API error in %s (HTTP %s): %s",
                func.__name__,
                cal_error.status_code,
                exc,
            )
            raise cal_error from exc
        except GoogleAuthError as exc:
            logger.error("Authorization error in %s: %s", func.__name__, exc)
            raise CalendarAuthError(f"Authorization failed: {exc}") from exc
        except (OSError, TimeoutError, HttpLib2Error) as exc:
            logger.error("Network error in %s: %s", func.__name__, exc)
            raise CalendarError(f"Network error: {exc}") from exc

    return wrapper  # type: ignore[return-value]
