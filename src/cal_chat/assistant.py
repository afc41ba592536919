"""Message pipeline: one chat message in, one reply out.

Wires the components together for each inbound message::

    classify -> execute -> synthesize

:class:`CalendarAssistant` never raises to its caller; every path ends in
a reply string.  :func:`build_assistant` constructs the production wiring
(Gemini, the JSON credential store and Google Calendar) from
:class:`~cal_chat.config.Settings`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from google.oauth2.credentials import Credentials

from cal_chat import dates
from cal_chat.calendar.client import GoogleCalendarClient
from cal_chat.calendar.credentials import JsonCredentialStore
from cal_chat.classifier import IntentClassifier
from cal_chat.config import Settings
from cal_chat.llm import GeminiClient
from cal_chat.orchestrator import CalendarOrchestrator
from cal_chat.synthesizer import ResponseSynthesizer

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "I'm not sure what you'd like me to do with your calendar. Try asking me to:\n\n"
    "- Show your calendar (e.g., what do I have on Friday?)\n"
    "- Create an event (e.g., schedule a meeting tomorrow at 2pm)\n"
    "- Update an event (e.g., move my fitness class to 3pm)\n"
    "- Delete an event (e.g., cancel my dentist appointment)"
)

APOLOGY_TEXT = "Sorry, I ran into a problem handling that. Please try again in a moment."


@dataclass(frozen=True)
class AssistantReply:
    """Outcome of handling one message.

    Attributes:
        text: The reply to send back to the user.
        action: The classified action.
        success: Whether the requested operation succeeded.
    """

    text: str
    action: str
    success: bool


class CalendarAssistant:
    """Handles chat messages end to end.

    Args:
        classifier: Turns the message into an intent.
        orchestrator: Executes the intent against the user's calendar.
        synthesizer: Phrases the operation result.
        timezone: Home timezone used for the reference instant.
    """

    def __init__(
        self,
        classifier: IntentClassifier,
        orchestrator: CalendarOrchestrator,
        synthesizer: ResponseSynthesizer,
        timezone: ZoneInfo,
    ) -> None:
        self._classifier = classifier
        self._orchestrator = orchestrator
        self._synthesizer = synthesizer
        self._timezone = timezone

    async def handle_message(
        self,
        user_id: str,
        text: str,
        now: datetime | None = None,
    ) -> AssistantReply:
        """Process one message from *user_id*.

        Args:
            user_id: The sender's chat identity.
            text: The message body.
            now: Reference instant; defaults to the current time in the
                home timezone.

        Returns:
            The reply.  An unexpected error yields an apology rather than
            an exception.
        """
        now = dates.localize(now, self._timezone) if now else dates.now_in(self._timezone)

        if not text or not text.strip():
            return AssistantReply(text=HELP_TEXT, action="unknown", success=False)

        logger.info("Processing message from %s: %r", user_id, text)
        try:
            intent = await self._classifier.classify(text, now)
            if intent.action == "unknown":
                return AssistantReply(text=HELP_TEXT, action="unknown", success=False)

            result = await self._orchestrator.execute(intent, user_id, now)
            logger.info(
                "Operation %s finished: success=%s failure=%s",
                intent.action,
                result.success,
                result.failure,
            )

            if result.failure == "not_linked":
                reply = result.error or APOLOGY_TEXT
            else:
                reply = await self._synthesizer.synthesize(
                    intent.action,
                    result,
                    intent.parameters.to_payload(),
                )
        except Exception:
            logger.exception("Unhandled error while processing message from %s", user_id)
            return AssistantReply(text=APOLOGY_TEXT, action="unknown", success=False)

        return AssistantReply(text=reply, action=intent.action, success=result.success)


def build_assistant(settings: Settings) -> CalendarAssistant:
    """Construct the production assistant from *settings*.

    One language-model client and one credential store are created and
    shared by the components; a calendar client is built per operation
    from the user's credentials.
    """
    zone = settings.zone
    llm = GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        fallback_model=settings.gemini_fallback_model or None,
        timeout=settings.llm_timeout_seconds,
    )
    store = JsonCredentialStore(settings.credential_store_path)

    def calendar_factory(creds: Credentials) -> GoogleCalendarClient:
        return GoogleCalendarClient(creds, timezone=settings.timezone)

    orchestrator = CalendarOrchestrator(
        credential_store=store,
        calendar_factory=calendar_factory,
        timezone=zone,
        call_timeout=settings.calendar_timeout_seconds,
        max_results=settings.max_results,
        search_window_days=settings.search_window_days,
    )
    return CalendarAssistant(
        classifier=IntentClassifier(llm, zone),
        orchestrator=orchestrator,
        synthesizer=ResponseSynthesizer(llm),
        timezone=zone,
    )
