"""Intent classification for calendar chat messages.

Maps one free-form utterance to an :class:`~cal_chat.models.intent.Intent`
with a single language-model call.  The model must answer with one JSON
object; anything else (including call failures and timeouts) degrades to
the ``unknown`` intent instead of raising.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from cal_chat.exceptions import MalformedResponseError, ModelError
from cal_chat.llm import LanguageModel
from cal_chat.models.intent import Intent
from cal_chat.prompts import build_classifier_prompt

logger = logging.getLogger(__name__)

_TEMPERATURE = 0.3
_MAX_OUTPUT_TOKENS = 500


class IntentClassifier:
    """Turns user utterances into structured calendar intents.

    Args:
        llm: The language-model capability.
        timezone: Home timezone used for the grounding date and examples.
    """

    def __init__(self, llm: LanguageModel, timezone: ZoneInfo) -> None:
        self._llm = llm
        self._timezone = timezone

    async def classify(self, utterance: str, reference: datetime) -> Intent:
        """Classify *utterance* relative to *reference*.

        Makes exactly one completion call.  Required parameters are not
        checked here.

        Args:
            utterance: The raw user message.
            reference: The current instant.

        Returns:
            The parsed intent, or :meth:`Intent.unknown` when the call or
            the parse fails.
        """
        system_instruction = build_classifier_prompt(reference, self._timezone)

        try:
            raw_text = await self._llm.complete(
                system_instruction,
                utterance,
                temperature=_TEMPERATURE,
                max_output_tokens=_MAX_OUTPUT_TOKENS,
                json_output=True,
            )
        except ModelError as exc:
            logger.error("Intent classification call failed: %s", exc)
            return Intent.unknown()
        except Exception:
            logger.exception("Unexpected error from language model during classification")
            return Intent.unknown()

        try:
            intent = parse_intent(raw_text)
        except MalformedResponseError as exc:
            logger.warning(
                "Malformed classifier response: %s | Raw response: %s",
                exc,
                exc.raw_response,
            )
            return Intent.unknown()

        logger.info(
            "Classified intent: action=%s parameters=%s",
            intent.action,
            intent.parameters.to_payload(),
        )
        return intent


def parse_intent(raw_text: str) -> Intent:
    """Parse the classifier's raw JSON text into an :class:`Intent`.

    Args:
        raw_text: The model output.

    Returns:
        The validated intent.

    Raises:
        MalformedResponseError: If the text is not a JSON object, the
            action is missing or unknown, or the parameters do not fit the
            action.
    """
    if not raw_text or not raw_text.strip():
        raise MalformedResponseError("Empty response from LLM", raw_response=raw_text or "")

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Invalid JSON: {exc}", raw_response=raw_text) from exc

    if not isinstance(data, dict):
        raise MalformedResponseError("Response is not a JSON object", raw_response=raw_text)

    action = data.get("action")
    if not isinstance(action, str):
        raise MalformedResponseError("Missing 'action'", raw_response=raw_text)

    parameters = data.get("parameters")
    if parameters is None:
        parameters = {}
    if not isinstance(parameters, dict):
        raise MalformedResponseError("'parameters' is not an object", raw_response=raw_text)

    try:
        return Intent.from_payload(action, parameters)
    except (ValueError, ValidationError) as exc:
        raise MalformedResponseError(
            f"Schema validation failed: {exc}", raw_response=raw_text
        ) from exc
