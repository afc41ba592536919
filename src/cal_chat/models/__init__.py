"""Data models for cal-chat."""

from __future__ import annotations

from cal_chat.models.intent import (
    CALENDAR_ACTIONS,
    Action,
    CreateEventParams,
    DeleteEventParams,
    EventFields,
    EventUpdates,
    Intent,
    NoParams,
    ReadEventsParams,
    UpdateEventParams,
)
from cal_chat.models.result import FailureKind, OperationResult

__all__ = [
    "CALENDAR_ACTIONS",
    "Action",
    "CreateEventParams",
    "DeleteEventParams",
    "EventFields",
    "EventUpdates",
    "FailureKind",
    "Intent",
    "NoParams",
    "OperationResult",
    "ReadEventsParams",
    "UpdateEventParams",
]
