"""Custom exceptions for the cal-chat language-model layer.

These exceptions describe failures of the language-model capability and of
the classifier's response parsing.  Neither escapes the component that
catches it: the classifier degrades to an ``unknown`` intent and the
synthesizer degrades to a template reply.
"""

from __future__ import annotations


class ModelError(Exception):
    """Raised when a language-model completion cannot be obtained.

    Covers quota, authentication, network and timeout failures as well as
    an empty completion.

    Attributes:
        attempts: Names of the transport strategies that were tried, in
            order.  Empty when the failure happened before any attempt.
    """

    def __init__(self, message: str, attempts: list[str] | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts or []


class MalformedResponseError(Exception):
    """Raised when the classifier output cannot be parsed or validated.

    This covers JSON parse failures, a missing or unknown ``action`` and
    Pydantic validation errors on the parameters.  The classifier catches
    it and returns an ``unknown`` intent.

    Attributes:
        raw_response: The raw LLM output that failed to parse.
    """

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response
