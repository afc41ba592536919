"""Data model for calendar operation outcomes.

Defines :class:`OperationResult`, the single value the orchestrator returns
for each classified intent and the synthesizer turns into a reply.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

FailureKind = Literal["validation", "not_linked", "not_found", "calendar"]


class OperationResult(BaseModel):
    """Outcome of one calendar operation.

    Exactly one payload field is populated on success, matching the action
    that produced it.  On failure ``error`` carries a user-presentable
    message and ``failure`` says which stage failed.

    Attributes:
        success: Whether the operation completed.
        events: Events in the requested window (read).
        count: Number of events returned (read).
        created_event: The event as created by the provider (create).
        updated_event: The event after the write (update).
        deleted_event: Snapshot of the event before deletion (delete).
        error: Failure message, or ``None`` on success.
        failure: ``"validation"`` (missing or invalid parameters),
            ``"not_linked"`` (no credentials for the user), ``"not_found"``
            (a search matched no event) or ``"calendar"`` (the provider call
            failed or timed out).
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    events: list[dict[str, Any]] | None = None
    count: int | None = None
    created_event: dict[str, Any] | None = Field(default=None, alias="createdEvent")
    updated_event: dict[str, Any] | None = Field(default=None, alias="updatedEvent")
    deleted_event: dict[str, Any] | None = Field(default=None, alias="deletedEvent")
    error: str | None = None
    failure: FailureKind | None = None

    @classmethod
    def fail(cls, failure: FailureKind, error: str) -> OperationResult:
        """Build a failed result."""
        return cls(success=False, failure=failure, error=error)

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase dict form, omitting unset values."""
        return self.model_dump(by_alias=True, exclude_none=True)
