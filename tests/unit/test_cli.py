"""Unit tests for the CLI entrypoint.

Tests cover: default routing to ``chat``, the explicit ``chat``
subcommand, ``link`` and ``status`` against a temporary credential store,
missing message arguments, and configuration errors.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cal_chat.__main__ import main
from cal_chat.assistant import AssistantReply

TOKEN_INFO = {
    "token": "access-token",
    "refresh_token": "fake-refresh-token",
    "client_id": "fake-client-id.apps.googleusercontent.com",
    "client_secret": "fake-client-secret",
    "token_uri": "https://oauth2.googleapis.com/token",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_assistant(text: str = "You have 2 events today.") -> MagicMock:
    assistant = MagicMock()
    assistant.handle_message = AsyncMock(
        return_value=AssistantReply(text=text, action="read_events", success=True)
    )
    return assistant


@pytest.fixture()
def store_env(tmp_path: Path, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the credential store at a temporary file."""
    store_path = tmp_path / "users.json"
    monkeypatch.setenv("CREDENTIAL_STORE_PATH", str(store_path))
    return store_path


# ---------------------------------------------------------------------------
# chat
# ---------------------------------------------------------------------------


class TestChat:
    """Unit tests for the ``chat`` subcommand."""

    def test_bare_message_routes_to_chat(
        self,
        monkeypatch_env: dict[str, str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Words without a subcommand are sent as one message."""
        assistant = _mock_assistant()

        with patch("cal_chat.__main__.build_assistant", return_value=assistant):
            exit_code = main(["what", "do", "I", "have", "today?"])

        assert exit_code == 0
        assistant.handle_message.assert_awaited_once_with("cli", "what do I have today?")
        assert capsys.readouterr().out.strip() == "You have 2 events today."

    def test_explicit_chat_with_user(self, monkeypatch_env: dict[str, str]) -> None:
        assistant = _mock_assistant()

        with patch("cal_chat.__main__.build_assistant", return_value=assistant):
            exit_code = main(["chat", "-u", "61400000000", "cancel my dentist"])

        assert exit_code == 0
        assistant.handle_message.assert_awaited_once_with("61400000000", "cancel my dentist")

    def test_missing_message_shows_usage(self, capsys: pytest.CaptureFixture[str]) -> None:
        """No arguments -> exit code 2, stderr contains 'usage'."""
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2
        assert "usage" in capsys.readouterr().err.lower()

    def test_config_error_exits_one(
        self,
        clean_env: None,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Missing GEMINI_API_KEY -> exit code 1 and an error on stderr."""
        with patch("cal_chat.__main__.build_assistant") as build:
            exit_code = main(["hello"])

        assert exit_code == 1
        build.assert_not_called()
        assert "GEMINI_API_KEY" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# link / status
# ---------------------------------------------------------------------------


class TestLinkAndStatus:
    """Unit tests for the ``link`` and ``status`` subcommands."""

    def test_status_unlinked(self, store_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = main(["status", "-u", "alice"])

        assert exit_code == 0
        assert capsys.readouterr().out.strip() == "alice: no calendar linked."

    def test_link_then_status(
        self,
        store_env: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        token_file = tmp_path / "token.json"
        token_file.write_text(json.dumps(TOKEN_INFO))

        assert main(["link", str(token_file), "--user", "alice"]) == 0
        assert main(["status", "--user", "alice"]) == 0

        out = capsys.readouterr().out
        assert "Calendar linked for alice." in out
        assert "alice: calendar linked at" in out
        assert "alice" in json.loads(store_env.read_text())

    def test_status_without_user_lists_linked(
        self,
        store_env: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        token_file = tmp_path / "token.json"
        token_file.write_text(json.dumps(TOKEN_INFO))
        main(["link", str(token_file), "-u", "bob"])
        main(["link", str(token_file), "-u", "alice"])
        capsys.readouterr()

        exit_code = main(["status"])

        lines = capsys.readouterr().out.strip().splitlines()
        assert exit_code == 0
        assert [line.split(":")[0] for line in lines] == ["alice", "bob"]
        assert all("calendar linked at" in line for line in lines)

    def test_status_without_user_empty_store(
        self,
        store_env: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(["status"]) == 0
        assert capsys.readouterr().out.strip() == "No calendars linked."

    def test_link_missing_file(
        self,
        store_env: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exit_code = main(["link", str(tmp_path / "nope.json")])

        assert exit_code == 1
        assert "Token file not found" in capsys.readouterr().err
        assert not store_env.exists()

    def test_status_corrupt_store(
        self,
        store_env: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        store_env.write_text("{broken")

        exit_code = main(["status"])

        assert exit_code == 1
        assert "corrupt" in capsys.readouterr().err
