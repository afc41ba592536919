"""Logging setup for cal-chat.

One stderr handler on the root logger, pipe-separated fields with ISO 8601
timestamps::

    2024-11-23T09:30:00 | INFO     | cal_chat.orchestrator | Fetching events ...

Known secrets (the Gemini API key) are masked in every formatted record,
and the Google/HTTP client loggers are held at WARNING so request
payloads and tokens stay out of DEBUG output.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
_MASK = "***"

# Marks the handler installed here so repeated setup calls reuse it.
_HANDLER_ATTR = "_cal_chat_log_handler"

_NOISY_LOGGERS = ("googleapiclient.discovery_cache", "httpx", "httpcore", "urllib3")


class SecretMaskingFormatter(logging.Formatter):
    """Formatter that replaces registered secret strings with ``***``."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__(_LOG_FORMAT, datefmt=_DATE_FORMAT)
        self.secrets: tuple[str, ...] = ()
        self.set_secrets(secrets)

    def set_secrets(self, secrets: Iterable[str]) -> None:
        # Longest first so a secret containing another is masked whole.
        self.secrets = tuple(sorted({s for s in secrets if s}, key=len, reverse=True))

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        for secret in self.secrets:
            text = text.replace(secret, _MASK)
        return text


def setup_logging(level: str = "INFO", secrets: Iterable[str] = ()) -> None:
    """Configure the root logger.

    Safe to call repeatedly: the existing handler is updated instead of a
    second one being added.

    Args:
        level: A standard logging level name (``"DEBUG"``, ``"INFO"``, ...).
        secrets: Strings to mask wherever they appear in log output.

    Raises:
        ValueError: If *level* is not a recognised logging level string.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    root = logging.getLogger()
    root.setLevel(numeric_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    for handler in root.handlers:
        if getattr(handler, _HANDLER_ATTR, False):
            handler.setLevel(numeric_level)
            if isinstance(handler.formatter, SecretMaskingFormatter):
                handler.formatter.set_secrets(secrets)
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(SecretMaskingFormatter(secrets))

    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)
