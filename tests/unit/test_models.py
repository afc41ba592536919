"""Tests for the intent and operation-result models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cal_chat.models import (
    CreateEventParams,
    DeleteEventParams,
    EventUpdates,
    Intent,
    NoParams,
    OperationResult,
    ReadEventsParams,
    UpdateEventParams,
)


class TestIntentFromPayload:
    """Tests for Intent.from_payload()."""

    @pytest.mark.parametrize(
        ("action", "params_type"),
        [
            ("read_events", ReadEventsParams),
            ("create_event", CreateEventParams),
            ("update_event", UpdateEventParams),
            ("delete_event", DeleteEventParams),
            ("unknown", NoParams),
        ],
    )
    def test_parameters_model_follows_action(self, action: str, params_type: type) -> None:
        intent = Intent.from_payload(action, {})

        assert intent.action == action
        assert isinstance(intent.parameters, params_type)

    def test_camel_case_aliases(self) -> None:
        intent = Intent.from_payload(
            "create_event",
            {
                "summary": "Meeting",
                "startDateTime": "2024-11-24T14:00:00",
                "endDateTime": "2024-11-24T15:00:00",
            },
        )

        assert intent.parameters.start_date_time == "2024-11-24T14:00:00"
        assert intent.parameters.end_date_time == "2024-11-24T15:00:00"

    def test_nested_updates(self) -> None:
        intent = Intent.from_payload(
            "update_event",
            {"searchQuery": "fitness class", "updates": {"startDateTime": "15:00"}},
        )

        assert intent.parameters.search_query == "fitness class"
        assert intent.parameters.updates == EventUpdates(start_date_time="15:00")

    def test_unknown_keys_are_ignored(self) -> None:
        intent = Intent.from_payload("delete_event", {"searchQuery": "dentist", "mood": "sad"})

        assert intent.parameters.to_payload() == {"searchQuery": "dentist"}

    def test_unknown_action_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown action"):
            Intent.from_payload("book_flight", {})

    def test_wrong_parameter_type_raises(self) -> None:
        with pytest.raises(ValidationError):
            Intent.from_payload("read_events", {"date": ["not", "a", "string"]})


class TestIntentConstruction:
    """Tests for building Intent directly."""

    def test_dict_parameters_follow_action(self) -> None:
        intent = Intent(action="read_events", parameters={"specificDay": "friday"})

        assert isinstance(intent.parameters, ReadEventsParams)
        assert intent.parameters.specific_day == "friday"

    def test_missing_parameters_default_to_action_model(self) -> None:
        intent = Intent(action="create_event")

        assert isinstance(intent.parameters, CreateEventParams)

    def test_unknown_intent(self) -> None:
        assert Intent.unknown().to_payload() == {"action": "unknown", "parameters": {}}

    def test_to_payload_omits_unset_fields(self) -> None:
        intent = Intent(action="read_events", parameters={"dateRange": "week"})

        assert intent.to_payload() == {
            "action": "read_events",
            "parameters": {"dateRange": "week"},
        }


class TestEventUpdates:
    """Tests for EventUpdates.is_empty()."""

    def test_empty(self) -> None:
        assert EventUpdates().is_empty()

    def test_not_empty(self) -> None:
        assert not EventUpdates(summary="Dentist checkup").is_empty()


class TestOperationResult:
    """Tests for OperationResult."""

    def test_fail_sets_kind_and_error(self) -> None:
        result = OperationResult.fail("validation", "Event title is required")

        assert result.success is False
        assert result.failure == "validation"
        assert result.error == "Event title is required"

    def test_payload_uses_camel_case(self) -> None:
        result = OperationResult(success=True, created_event={"id": "evt1"})

        assert result.to_payload() == {"success": True, "createdEvent": {"id": "evt1"}}

    def test_read_payload(self) -> None:
        result = OperationResult(success=True, events=[], count=0)

        assert result.to_payload() == {"success": True, "events": [], "count": 0}
