"""Per-user Google Calendar credential storage.

The orchestrator looks up OAuth credentials by user identity before every
calendar operation and asks the store to refresh them when they have
expired.  :class:`JsonCredentialStore` keeps all users in one JSON file::

    {
      "61400000000": {
        "token": {... authorized-user info from Credentials.to_json() ...},
        "linked_at": "2024-11-23T01:00:00+00:00",
        "updated_at": "2024-11-23T01:00:00+00:00"
      }
    }

Linking is done out of band: a token file produced by any OAuth flow is
imported with :meth:`JsonCredentialStore.link_from_file`.  Writes are
last-writer-wins.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from google.auth import exceptions as google_auth_exceptions
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from cal_chat.calendar.exceptions import CalendarAuthError

logger = logging.getLogger(__name__)

SCOPES: list[str] = ["https://www.googleapis.com/auth/calendar"]
"""OAuth 2.0 scopes required for full Calendar CRUD access."""


class CredentialStore(Protocol):
    """Credential lookup consumed by the orchestrator."""

    async def get(self, user_id: str) -> Credentials | None:
        """Return the user's credentials, or ``None`` if not linked."""
        ...

    async def refresh_if_expired(self, user_id: str, creds: Credentials) -> Credentials:
        """Refresh expired *creds* and persist them.

        Raises:
            CalendarAuthError: If the refresh fails.
        """
        ...


class JsonCredentialStore:
    """File-backed :class:`CredentialStore`.

    Args:
        path: Location of the JSON file.  Created on first write.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    # ------------------------------------------------------------------
    # Async surface (orchestrator)
    # ------------------------------------------------------------------

    async def get(self, user_id: str) -> Credentials | None:
        """Load the credentials for *user_id* without blocking the loop."""
        return await asyncio.to_thread(self.load, user_id)

    async def refresh_if_expired(self, user_id: str, creds: Credentials) -> Credentials:
        """Refresh *creds* when expired and rewrite the user's record.

        Credentials that are still valid, or that cannot be refreshed for
        lack of a refresh token, are returned unchanged.

        Raises:
            CalendarAuthError: If the token endpoint rejects the refresh.
        """
        if not (creds.expired and creds.refresh_token):
            return creds

        logger.info("Credentials for user %s expired, refreshing", user_id)
        try:
            await asyncio.to_thread(creds.refresh, Request())
        except google_auth_exceptions.GoogleAuthError as exc:
            logger.warning("Token refresh failed for user %s: %s", user_id, exc)
            raise CalendarAuthError(f"Token refresh failed: {exc}") from exc

        await asyncio.to_thread(self.save, user_id, creds)
        return creds

    # ------------------------------------------------------------------
    # Sync surface (CLI and worker threads)
    # ------------------------------------------------------------------

    def load(self, user_id: str) -> Credentials | None:
        """Return the stored credentials for *user_id*, or ``None``.

        A record whose token cannot be parsed is treated as not linked.
        """
        record = self._read_all().get(user_id)
        if not record or "token" not in record:
            logger.info("No linked calendar for user %s", user_id)
            return None

        try:
            return Credentials.from_authorized_user_info(record["token"], SCOPES)
        except (ValueError, KeyError) as exc:
            logger.warning("Stored token for user %s is invalid: %s", user_id, exc)
            return None

    def save(self, user_id: str, creds: Credentials) -> None:
        """Write *creds* as the user's token, keeping ``linked_at``."""
        users = self._read_all()
        now = _utc_now()
        record = users.get(user_id, {})
        record["token"] = json.loads(creds.to_json())
        record.setdefault("linked_at", now)
        record["updated_at"] = now
        users[user_id] = record
        self._write_all(users)
        logger.info("Saved credentials for user %s to %s", user_id, self._path)

    def link_from_file(self, user_id: str, token_path: Path | str) -> Credentials:
        """Import an authorized-user token JSON file for *user_id*.

        Raises:
            CalendarAuthError: If the file is missing or not a valid token.
        """
        token_path = Path(token_path)
        if not token_path.exists():
            msg = f"Token file not found: {token_path}"
            logger.error(msg)
            raise CalendarAuthError(msg)

        try:
            creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)
        except (json.JSONDecodeError, ValueError, KeyError) as exc:
            raise CalendarAuthError(f"Invalid token file {token_path}: {exc}") from exc

        users = self._read_all()
        users.pop(user_id, None)
        self._write_all(users)
        self.save(user_id, creds)
        return creds

    def is_linked(self, user_id: str) -> bool:
        record = self._read_all().get(user_id)
        return bool(record and record.get("token"))

    def linked_at(self, user_id: str) -> str | None:
        """Return when *user_id* linked a calendar (ISO 8601), or ``None``."""
        record = self._read_all().get(user_id) or {}
        return record.get("linked_at")

    def list_users(self) -> list[str]:
        """Return the identities with a stored record, sorted."""
        return sorted(self._read_all())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as exc:
            logger.error("Credential store %s is not valid JSON: %s", self._path, exc)
            raise CalendarAuthError(f"Credential store is corrupt: {self._path}") from exc
        if not isinstance(data, dict):
            raise CalendarAuthError(f"Credential store is corrupt: {self._path}")
        return data

    def _write_all(self, users: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(users, indent=2), encoding="utf-8")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
