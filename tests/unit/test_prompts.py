"""Tests for the classifier and synthesizer prompt builders."""

from __future__ import annotations

import json
from datetime import datetime
from zoneinfo import ZoneInfo

from cal_chat.prompts import (
    SYNTHESIS_SYSTEM_PROMPT,
    build_classifier_examples,
    build_classifier_prompt,
    build_synthesis_input,
)

SYDNEY = ZoneInfo("Australia/Sydney")
# Saturday
REFERENCE = datetime(2024, 11, 23, 9, 30, tzinfo=SYDNEY)


class TestClassifierPrompt:
    """Tests for build_classifier_prompt()."""

    def test_grounding_context(self) -> None:
        """Current date, weekday, time and timezone are embedded."""
        prompt = build_classifier_prompt(REFERENCE, SYDNEY)

        assert "Current date: 2024-11-23 (Saturday)" in prompt
        assert "Current time: 09:30:00" in prompt
        assert "Timezone: Australia/Sydney" in prompt

    def test_lists_every_action(self) -> None:
        prompt = build_classifier_prompt(REFERENCE, SYDNEY)

        for action in ("read_events", "create_event", "update_event", "delete_event", "unknown"):
            assert action in prompt

    def test_reference_converted_to_home_zone(self) -> None:
        """A UTC reference is shown as Sydney wall time."""
        utc_reference = datetime(2024, 11, 23, 20, 0, tzinfo=ZoneInfo("UTC"))

        prompt = build_classifier_prompt(utc_reference, SYDNEY)

        assert "Current date: 2024-11-24 (Sunday)" in prompt
        assert "Current time: 07:00:00" in prompt


class TestClassifierExamples:
    """Tests for build_classifier_examples()."""

    def _responses(self) -> list[dict]:
        block = build_classifier_examples(REFERENCE, SYDNEY)
        return [
            json.loads(line.removeprefix("Response: "))
            for line in block.splitlines()
            if line.startswith("Response: ")
        ]

    def test_every_example_is_valid_json(self) -> None:
        responses = self._responses()

        assert len(responses) == 9
        assert all({"action", "parameters"} <= set(r) for r in responses)

    def test_example_dates_follow_reference(self) -> None:
        """Example datetimes are computed from the reference instant."""
        creates = [r["parameters"] for r in self._responses() if r["action"] == "create_event"]

        # Thursday after Saturday 2024-11-23 is 2024-11-28.
        assert creates[0]["startDateTime"] == "2024-11-28T14:00:00"
        assert creates[0]["endDateTime"] == "2024-11-28T15:00:00"
        assert creates[1]["startDateTime"] == "2024-11-24T10:00:00"
        assert creates[1]["endDateTime"] == "2024-11-24T10:30:00"

    def test_tomorrow_read_example(self) -> None:
        reads = [r["parameters"] for r in self._responses() if r["action"] == "read_events"]

        assert {"date": "2024-11-24", "dateRange": "day"} in reads


class TestSynthesisPrompt:
    """Tests for the synthesis persona and input."""

    def test_persona(self) -> None:
        assert "friendly calendar assistant" in SYNTHESIS_SYSTEM_PROMPT

    def test_synthesis_input_serialises_context(self) -> None:
        text = build_synthesis_input(
            "read_events",
            {"specificDay": "friday"},
            {"success": True, "events": [], "count": 0},
        )

        assert "Action: read_events" in text
        assert 'Parameters: {"specificDay": "friday"}' in text
        assert 'Result: {"success": true, "events": [], "count": 0}' in text
