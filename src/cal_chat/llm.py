"""Gemini language-model client.

Wraps the Google ``google-genai`` SDK behind the small completion contract
the classifier and synthesizer depend on::

    await llm.complete(system_instruction, user_input, temperature, max_output_tokens)

Calls go through the SDK's async surface (``client.aio``) so a slow model
never blocks the event loop.  The primary model and an optional fallback
model are tried in order under one shared timeout via
:func:`~cal_chat.transport.call_with_fallback`.
"""

from __future__ import annotations

import logging
from typing import Protocol

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from cal_chat.exceptions import ModelError
from cal_chat.transport import FallbackExhaustedError, call_with_fallback

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 20.0


class LanguageModel(Protocol):
    """Completion capability consumed by the classifier and synthesizer."""

    async def complete(
        self,
        system_instruction: str,
        user_input: str,
        temperature: float,
        max_output_tokens: int,
        json_output: bool = False,
    ) -> str:
        """Return the model's text for *user_input*.

        Raises:
            ModelError: On quota, auth, network, timeout or empty output.
        """
        ...


class GeminiClient:
    """Language-model capability backed by Google Gemini.

    Args:
        api_key: Google Gemini API key.
        model: Primary model identifier.  Defaults to ``"gemini-2.0-flash"``.
        fallback_model: Model tried when the primary attempt fails, or
            ``None`` / ``""`` for no fallback.
        timeout: Seconds shared by all attempts of one completion.
        client: Optional pre-built ``genai.Client``.  Pass a mock here in
            tests.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        fallback_model: str | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        client: genai.Client | None = None,
    ) -> None:
        self._client = client or genai.Client(api_key=api_key)
        self._models = [model] + ([fallback_model] if fallback_model else [])
        self._timeout = timeout

    @property
    def models(self) -> list[str]:
        """Model identifiers in the order they are tried."""
        return list(self._models)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_instruction: str,
        user_input: str,
        temperature: float,
        max_output_tokens: int,
        json_output: bool = False,
    ) -> str:
        """Generate a completion for *user_input*.

        Args:
            system_instruction: Fixed instruction for the model.
            user_input: The user-turn content.
            temperature: Sampling temperature.
            max_output_tokens: Upper bound on generated tokens.
            json_output: Request ``application/json`` output.

        Returns:
            The raw text of the first candidate.

        Raises:
            ModelError: If every model attempt failed, returned no text, or
                the shared timeout was exceeded.
        """
        config = genai_types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json" if json_output else None,
        )

        logger.debug("System instruction sent to Gemini:\n%s", system_instruction)
        logger.debug("User input sent to Gemini:\n%s", user_input)

        strategies = [
            (model, self._strategy(model, user_input, config)) for model in self._models
        ]
        try:
            text = await call_with_fallback(strategies, timeout=self._timeout)
        except FallbackExhaustedError as exc:
            logger.error("Gemini completion failed: %s", exc)
            raise ModelError(str(exc), attempts=exc.attempts) from exc

        logger.debug("Raw Gemini response:\n%s", text)
        return text

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _strategy(
        self,
        model: str,
        user_input: str,
        config: genai_types.GenerateContentConfig,
    ):
        async def attempt() -> str:
            return await self._call_api(model, user_input, config)

        return attempt

    async def _call_api(
        self,
        model: str,
        user_input: str,
        config: genai_types.GenerateContentConfig,
    ) -> str:
        """Call one Gemini model and return the response text.

        Raises:
            ModelError: On API-level failures or an empty response.
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=user_input,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise ModelError(f"Gemini API call to {model} failed: {exc}") from exc

        text = (response.text or "").strip()
        if not text:
            raise ModelError(f"Empty response from {model}")
        return text
