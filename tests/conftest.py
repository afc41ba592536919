"""Shared fixtures for cal-chat tests."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest

_ENV_VARS = (
    "GEMINI_API_KEY",
    "LOG_LEVEL",
    "TIMEZONE",
    "GEMINI_MODEL",
    "GEMINI_FALLBACK_MODEL",
    "CREDENTIAL_STORE_PATH",
    "LLM_TIMEOUT_SECONDS",
    "CALENDAR_TIMEOUT_SECONDS",
    "MAX_RESULTS",
    "SEARCH_WINDOW_DAYS",
)


@pytest.fixture()
def monkeypatch_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set the required environment variables to valid defaults.

    Optional variables are removed so defaults apply.  Also patches
    ``load_dotenv`` so that a real ``.env`` file on disk does not override
    the test values.

    Returns the dict of variables so tests can inspect or override values.
    """
    monkeypatch.setattr("cal_chat.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    env_vars = {"GEMINI_API_KEY": "test-gemini-key-12345"}
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all cal-chat-related environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("cal_chat.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
