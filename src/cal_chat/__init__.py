"""cal-chat: a chat assistant for Google Calendar.

Turns free-form chat messages into calendar reads, creates, updates and
deletes, and replies in natural language.
"""

from __future__ import annotations

from cal_chat.assistant import AssistantReply, CalendarAssistant, build_assistant
from cal_chat.classifier import IntentClassifier, parse_intent
from cal_chat.exceptions import MalformedResponseError, ModelError
from cal_chat.models.intent import EventFields, Intent
from cal_chat.models.result import OperationResult
from cal_chat.orchestrator import CalendarOrchestrator
from cal_chat.synthesizer import ResponseSynthesizer

__version__ = "0.1.0"

__all__ = [
    "AssistantReply",
    "CalendarAssistant",
    "CalendarOrchestrator",
    "EventFields",
    "Intent",
    "IntentClassifier",
    "MalformedResponseError",
    "ModelError",
    "OperationResult",
    "ResponseSynthesizer",
    "build_assistant",
    "parse_intent",
]
