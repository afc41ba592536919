"""Prompt builders for the classifier and synthesizer Gemini calls.

The classifier prompt enumerates the four calendar actions and their
parameter shapes, grounds the model in the current date and time of the
home timezone, and lists worked examples.  The example dates are computed
with :mod:`cal_chat.dates` from the same reference instant, so the model
always sees examples consistent with "now".
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from cal_chat import dates

_ISO_LOCAL = "%Y-%m-%dT%H:%M:%S"


def _example(user: str, action: str, parameters: dict[str, Any]) -> str:
    response = json.dumps({"action": action, "parameters": parameters})
    return f'User: "{user}"\nResponse: {response}'


def build_classifier_examples(reference: datetime, zone: ZoneInfo) -> str:
    """Build the few-shot examples block for the classifier prompt.

    Args:
        reference: The current instant.
        zone: The home timezone.

    Returns:
        Example ``User`` / ``Response`` pairs separated by blank lines.
    """
    fitness_start = dates.resolve("thursday 2pm", reference, zone)
    meeting_start = dates.resolve("tomorrow 10am", reference, zone)
    tomorrow = dates.resolve("tomorrow", reference, zone).date()

    examples = [
        _example(
            "what do I have on friday?",
            "read_events",
            {"specificDay": "friday", "dateRange": "day"},
        ),
        _example(
            "show me my calendar for next week",
            "read_events",
            {"dateRange": "week"},
        ),
        _example(
            "anything on tomorrow?",
            "read_events",
            {"date": tomorrow.isoformat(), "dateRange": "day"},
        ),
        _example(
            "schedule a fitness class at surry hills on thursday 2pm",
            "create_event",
            {
                "summary": "Fitness class",
                "location": "Surry Hills",
                "startDateTime": fitness_start.strftime(_ISO_LOCAL),
                "endDateTime": (fitness_start + timedelta(hours=1)).strftime(_ISO_LOCAL),
            },
        ),
        _example(
            "book me a meeting with john tomorrow at 10am for 30 minutes",
            "create_event",
            {
                "summary": "Meeting with John",
                "startDateTime": meeting_start.strftime(_ISO_LOCAL),
                "endDateTime": (meeting_start + timedelta(minutes=30)).strftime(_ISO_LOCAL),
            },
        ),
        _example(
            "move my fitness class to 3pm",
            "update_event",
            {"searchQuery": "fitness class", "updates": {"startDateTime": "15:00"}},
        ),
        _example(
            "rename the dentist appointment to dentist checkup",
            "update_event",
            {"searchQuery": "dentist", "updates": {"summary": "Dentist checkup"}},
        ),
        _example(
            "cancel my meeting with john",
            "delete_event",
            {"searchQuery": "meeting with john"},
        ),
        _example("what's the weather like?", "unknown", {}),
    ]
    return "\n\n".join(examples)


def build_classifier_prompt(reference: datetime, zone: ZoneInfo) -> str:
    """Build the system instruction for intent classification.

    Args:
        reference: The current instant; converted to *zone* for display.
        zone: The home timezone all relative expressions resolve against.

    Returns:
        The complete system instruction string.
    """
    local_now = dates.localize(reference, zone)
    examples = build_classifier_examples(local_now, zone)

    return f"""\
You are a calendar assistant that interprets user requests and converts them
into structured calendar operations.

Analyse the user's message and respond with a JSON object containing:
- "action": one of "read_events", "create_event", "update_event", "delete_event", "unknown"
- "parameters": an object with the parameters for that action

For "read_events":
- "date": ISO date string (YYYY-MM-DD) when a specific date is meant
- "dateRange": "day", "week", or "month"
- "specificDay": a weekday name such as "monday" or "friday"
Omit all three for today.

For "create_event":
- "summary": event title
- "location": event location (only if mentioned)
- "description": additional details (only if mentioned)
- "startDateTime": ISO datetime string (YYYY-MM-DDTHH:MM:SS, local time)
- "endDateTime": ISO datetime string (assume 1 hour after the start if not specified)

For "update_event":
- "searchQuery": keywords identifying the event
- "updates": object with only the fields to change (summary, location,
  description, startDateTime, endDateTime). A time without a date such as
  "15:00" keeps the event's current date.

For "delete_event":
- "searchQuery": keywords identifying the event

Use "unknown" with empty parameters for anything that is not a calendar request.

Date/time rules:
- "today" = the current date
- "tomorrow" = the current date + 1 day
- "friday", "monday", etc. = the next occurrence of that day, never today
- "next friday" = the friday after the next occurrence
- "2pm", "14:00" = today at that time
- "friday 2pm" = the next friday at 2pm

Current date: {local_now.strftime("%Y-%m-%d")} ({local_now.strftime("%A")})
Current time: {local_now.strftime("%H:%M:%S")}
Timezone: {zone.key}

Examples:

{examples}

Respond ONLY with a single valid JSON object, no additional text."""


SYNTHESIS_SYSTEM_PROMPT = """\
You are a friendly calendar assistant. Write a concise, natural reply based on
the calendar operation that was performed.

Keep replies brief and friendly. Use emoji sparingly (📅 for calendar, ✅ for
success, ❌ for errors).

For read_events: summarise the events as a clear list with times, or say there
are no events.
For create_event: confirm what was created with the key details.
For update_event: confirm what was changed.
For delete_event: confirm what was deleted.
For errors: explain what went wrong in a helpful way."""


def build_synthesis_input(
    action: str,
    parameters: dict[str, Any],
    result: dict[str, Any],
) -> str:
    """Build the user-turn content for reply synthesis.

    Args:
        action: The classified action.
        parameters: The intent parameters in wire form.
        result: The operation result in wire form.

    Returns:
        The serialised ``{action, parameters, result}`` context with a
        closing instruction.
    """
    return (
        f"Action: {action}\n"
        f"Parameters: {json.dumps(parameters, default=str)}\n"
        f"Result: {json.dumps(result, default=str)}\n\n"
        "Generate a user-friendly response."
    )
