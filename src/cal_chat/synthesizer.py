"""Natural-language replies for calendar operation results.

:class:`ResponseSynthesizer` asks the language model to phrase the outcome
of an operation.  When that call fails for any reason it falls back to a
fixed template, so a reply is always produced.
"""

from __future__ import annotations

import logging
from typing import Any

from cal_chat.exceptions import ModelError
from cal_chat.llm import LanguageModel
from cal_chat.models.result import OperationResult
from cal_chat.prompts import SYNTHESIS_SYSTEM_PROMPT, build_synthesis_input

logger = logging.getLogger(__name__)

_TEMPERATURE = 0.7
_MAX_OUTPUT_TOKENS = 300

GENERIC_FAILURE = "Something went wrong. Please try again."

_CONFIRMATIONS: dict[str, str] = {
    "create_event": "✅ Event created successfully!",
    "update_event": "✅ Event updated successfully!",
    "delete_event": "✅ Event deleted successfully!",
}


class ResponseSynthesizer:
    """Turns operation results into chat replies.

    Args:
        llm: The language-model capability.
    """

    def __init__(self, llm: LanguageModel) -> None:
        self._llm = llm

    async def synthesize(
        self,
        action: str,
        result: OperationResult,
        parameters: dict[str, Any] | None = None,
    ) -> str:
        """Generate the reply for one operation.

        Args:
            action: The classified action.
            result: The orchestrator's outcome.
            parameters: The intent parameters in wire form.

        Returns:
            The model's trimmed reply, or the template reply when the
            model call fails or returns nothing.
        """
        user_input = build_synthesis_input(action, parameters or {}, result.to_payload())

        try:
            text = await self._llm.complete(
                SYNTHESIS_SYSTEM_PROMPT,
                user_input,
                temperature=_TEMPERATURE,
                max_output_tokens=_MAX_OUTPUT_TOKENS,
            )
        except ModelError as exc:
            logger.warning("Reply generation failed, using template: %s", exc)
            return fallback_reply(action, result)
        except Exception:
            logger.exception("Unexpected error during reply generation, using template")
            return fallback_reply(action, result)

        text = (text or "").strip()
        if not text:
            logger.warning("Empty reply from language model, using template")
            return fallback_reply(action, result)
        return text


def fallback_reply(action: str, result: OperationResult) -> str:
    """Deterministic reply used when the language model is unavailable.

    - ``read_events`` success: ``"Found {count} event(s)."``
    - create / update / delete success: a short confirmation.
    - any failure: ``result.error``, or a generic apology.
    """
    if not result.success:
        return result.error or GENERIC_FAILURE
    if action == "read_events":
        count = result.count if result.count is not None else len(result.events or [])
        return f"Found {count} event(s)."
    return _CONFIRMATIONS.get(action, "✅ Done!")
