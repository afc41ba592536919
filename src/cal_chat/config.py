"""Configuration loading for cal-chat.

Reads settings from environment variables (with .env support via python-dotenv)
and validates that all required values are present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        gemini_api_key: API key for Google Gemini.
        log_level: Logging level (default ``"INFO"``).
        timezone: IANA name of the home timezone every relative date is
            resolved against (default ``"Australia/Sydney"``).
        gemini_model: Primary Gemini model identifier.
        gemini_fallback_model: Model tried when the primary call fails, or
            ``""`` to disable the fallback.
        credential_store_path: Path of the JSON file holding linked
            calendar credentials keyed by user identity.
        llm_timeout_seconds: Shared time budget for one completion,
            across all fallback strategies.
        calendar_timeout_seconds: Upper bound for each calendar or
            credential call.
        max_results: Maximum number of events returned by a read.
        search_window_days: How far ahead update/delete searches look.
    """

    gemini_api_key: str
    log_level: str = "INFO"
    timezone: str = "Australia/Sydney"
    gemini_model: str = "gemini-2.0-flash"
    gemini_fallback_model: str = "gemini-2.0-flash-lite"
    credential_store_path: str = "users.json"
    llm_timeout_seconds: float = 20.0
    calendar_timeout_seconds: float = 30.0
    max_results: int = 10
    search_window_days: int = 30

    @property
    def zone(self) -> ZoneInfo:
        """The home timezone as a :class:`zoneinfo.ZoneInfo`."""
        return ZoneInfo(self.timezone)

    def __repr__(self) -> str:
        return (
            f"Settings(gemini_api_key='***', "
            f"log_level={self.log_level!r}, "
            f"timezone={self.timezone!r}, "
            f"gemini_model={self.gemini_model!r}, "
            f"gemini_fallback_model={self.gemini_fallback_model!r}, "
            f"credential_store_path={self.credential_store_path!r})"
        )


_OPTIONAL_STRINGS = {
    "LOG_LEVEL": "log_level",
    "TIMEZONE": "timezone",
    "GEMINI_MODEL": "gemini_model",
    "CREDENTIAL_STORE_PATH": "credential_store_path",
}

_OPTIONAL_NUMBERS = {
    "LLM_TIMEOUT_SECONDS": ("llm_timeout_seconds", float),
    "CALENDAR_TIMEOUT_SECONDS": ("calendar_timeout_seconds", float),
    "MAX_RESULTS": ("max_results", int),
    "SEARCH_WINDOW_DAYS": ("search_window_days", int),
}


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the project root
    is picked up automatically.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If ``GEMINI_API_KEY`` is missing, empty, or
            whitespace-only, if ``TIMEZONE`` is not a known IANA zone, or if
            a numeric setting is not a positive number.
    """
    load_dotenv()

    raw_key = os.environ.get("GEMINI_API_KEY", "")
    if not raw_key.strip():
        raise ConfigError("Missing required environment variables: GEMINI_API_KEY")

    values: dict[str, object] = {"gemini_api_key": raw_key}

    for env_var, field_name in _OPTIONAL_STRINGS.items():
        raw = os.environ.get(env_var, "").strip()
        if raw:
            values[field_name] = raw

    # An explicitly empty fallback model disables the fallback.
    if "GEMINI_FALLBACK_MODEL" in os.environ:
        values["gemini_fallback_model"] = os.environ["GEMINI_FALLBACK_MODEL"].strip()

    for env_var, (field_name, cast) in _OPTIONAL_NUMBERS.items():
        raw = os.environ.get(env_var, "").strip()
        if not raw:
            continue
        try:
            number = cast(raw)
        except ValueError as exc:
            raise ConfigError(f"{env_var} must be a number, got {raw!r}") from exc
        if number <= 0:
            raise ConfigError(f"{env_var} must be positive, got {raw!r}")
        values[field_name] = number

    timezone = values.get("timezone", Settings.timezone)
    try:
        ZoneInfo(str(timezone))
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown TIMEZONE: {timezone!r}") from exc

    return Settings(**values)  # type: ignore[arg-type]
