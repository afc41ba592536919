"""Shared fixtures for Google Calendar unit tests."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, create_autospec

import pytest
from google.oauth2.credentials import Credentials

AUTHORIZED_USER_INFO = {
    "token": "access-token",
    "refresh_token": "fake-refresh-token",
    "client_id": "fake-client-id.apps.googleusercontent.com",
    "client_secret": "fake-client-secret",
    "token_uri": "https://oauth2.googleapis.com/token",
    "scopes": ["https://www.googleapis.com/auth/calendar"],
}


@pytest.fixture()
def mock_credentials() -> MagicMock:
    """Return a mock Credentials object that reports as valid."""
    creds = create_autospec(Credentials, instance=True)
    creds.valid = True
    creds.expired = False
    creds.refresh_token = "fake-refresh-token"
    creds.to_json.return_value = json.dumps(AUTHORIZED_USER_INFO)
    return creds


@pytest.fixture()
def mock_expired_credentials() -> MagicMock:
    """Return a mock Credentials object that is expired but has a refresh token."""
    creds = create_autospec(Credentials, instance=True)
    creds.valid = False
    creds.expired = True
    creds.refresh_token = "fake-refresh-token"
    creds.to_json.return_value = json.dumps({**AUTHORIZED_USER_INFO, "token": "refreshed"})
    return creds


@pytest.fixture()
def token_file(tmp_path: Path) -> Path:
    """Write an authorized-user token file and return its path."""
    path = tmp_path / "token.json"
    path.write_text(json.dumps(AUTHORIZED_USER_INFO))
    return path


@pytest.fixture()
def store_path(tmp_path: Path) -> Path:
    """Return a path for the credential store (file does not exist yet)."""
    return tmp_path / "users.json"
