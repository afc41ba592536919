"""Pydantic models for classified user intents.

Defines the structured data the intent classifier produces and the
orchestrator consumes:

- :class:`Intent` -- the ``{action, parameters}`` pair for one utterance.
- :class:`ReadEventsParams`, :class:`CreateEventParams`,
  :class:`UpdateEventParams`, :class:`DeleteEventParams` -- the
  per-action parameter shapes.
- :class:`EventUpdates` -- the partial field set of an update request.
- :class:`EventFields` -- the normalised payload written to the calendar.

Parameter models use the camelCase keys the language model emits
(``startDateTime``) as aliases for snake_case attributes.  Every parameter
is optional: required fields are enforced by the orchestrator, close to
where they are used.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Action = Literal["read_events", "create_event", "update_event", "delete_event", "unknown"]

CALENDAR_ACTIONS: tuple[str, ...] = (
    "read_events",
    "create_event",
    "update_event",
    "delete_event",
)


class _Params(BaseModel):
    """Base for parameter models: alias-aware, ignores unknown keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase dict form, omitting unset values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class NoParams(_Params):
    """Parameters of an ``unknown`` intent (always empty)."""


class ReadEventsParams(_Params):
    """Parameters for ``read_events``.

    At most one of ``date`` / ``specific_day`` / ``date_range`` decides the
    window; with none of them the window is today.
    """

    date: str | None = None
    date_range: str | None = Field(default=None, alias="dateRange")
    specific_day: str | None = Field(default=None, alias="specificDay")


class CreateEventParams(_Params):
    """Parameters for ``create_event``."""

    summary: str | None = None
    location: str | None = None
    description: str | None = None
    start_date_time: str | None = Field(default=None, alias="startDateTime")
    end_date_time: str | None = Field(default=None, alias="endDateTime")


class EventUpdates(_Params):
    """Fields to change on an existing event; unset fields are left alone."""

    summary: str | None = None
    location: str | None = None
    description: str | None = None
    start_date_time: str | None = Field(default=None, alias="startDateTime")
    end_date_time: str | None = Field(default=None, alias="endDateTime")

    def is_empty(self) -> bool:
        """Whether no field would change."""
        return not self.to_payload()


class UpdateEventParams(_Params):
    """Parameters for ``update_event``."""

    search_query: str | None = Field(default=None, alias="searchQuery")
    updates: EventUpdates | None = None


class DeleteEventParams(_Params):
    """Parameters for ``delete_event``."""

    search_query: str | None = Field(default=None, alias="searchQuery")


IntentParams = ReadEventsParams | CreateEventParams | UpdateEventParams | DeleteEventParams | NoParams

PARAMS_BY_ACTION: dict[str, type[_Params]] = {
    "read_events": ReadEventsParams,
    "create_event": CreateEventParams,
    "update_event": UpdateEventParams,
    "delete_event": DeleteEventParams,
    "unknown": NoParams,
}


class Intent(BaseModel):
    """A classified user request.

    Attributes:
        action: The calendar action, or ``"unknown"``.
        parameters: The action-specific parameter model.
    """

    action: Action
    parameters: IntentParams = Field(default_factory=NoParams)

    @model_validator(mode="before")
    @classmethod
    def _parameters_for_action(cls, data: Any) -> Any:
        """Validate ``parameters`` against the model of the given action."""
        if not isinstance(data, dict):
            return data
        action = data.get("action")
        params_model = PARAMS_BY_ACTION.get(action) if isinstance(action, str) else None
        if params_model is None:
            return data

        params = data.get("parameters")
        if params is None:
            params = {}
        elif isinstance(params, _Params) and not isinstance(params, params_model):
            params = params.to_payload()
        if isinstance(params, dict):
            data = {**data, "parameters": params_model.model_validate(params)}
        return data

    @classmethod
    def unknown(cls) -> Intent:
        """Return the ``{action: "unknown", parameters: {}}`` intent."""
        return cls(action="unknown", parameters=NoParams())

    @classmethod
    def from_payload(cls, action: str, parameters: dict[str, Any]) -> Intent:
        """Build an intent from raw ``action`` / ``parameters`` values.

        Raises:
            ValueError: If *action* is not a known action.
            pydantic.ValidationError: If *parameters* does not fit the
                action's parameter model.
        """
        params_model = PARAMS_BY_ACTION.get(action)
        if params_model is None:
            raise ValueError(f"Unknown action: {action!r}")
        return cls(action=action, parameters=params_model.model_validate(parameters))  # type: ignore[arg-type]

    def to_payload(self) -> dict[str, Any]:
        """Return the ``{action, parameters}`` dict in wire form."""
        return {"action": self.action, "parameters": self.parameters.to_payload()}


class EventFields(BaseModel):
    """Normalised event payload written to the calendar.

    ``start`` and ``end`` are ISO 8601 strings.  A bare date
    (``"2024-11-24"``) denotes an all-day event; a datetime without an
    offset is wall-clock time in the home timezone.
    """

    summary: str
    start: str
    end: str
    location: str | None = None
    description: str | None = None
