from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

from .models import OAuth
from .paths import default_settings_path

logger = logging.getLogger(__name__)


class SettingsStore:
    """Per-application key-value settings backed by a small SQLite file.

    Schema:
      settings(key TEXT PRIMARY KEY, value TEXT NOT NULL)

    A connection is opened per operation, so one store can be shared
    between the main flow and the listener thread.
    """

    def __init__(self, db_path: Optional[Path] = None, app_name: str = "TwitchWebRequest") -> None:
        self._db_path = (
            Path(db_path)
            if db_path is not None
            else default_settings_path(app_name=app_name)
        )
        self._ensure_db()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_db(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def has_key(self, key: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT 1 FROM settings WHERE key = ?", (key,))
            return cur.fetchone() is not None
        finally:
            conn.close()

    def get_string(self, key: str, default: str = "") -> str:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT value FROM settings WHERE key = ?", (key,))
            row = cur.fetchone()
            return row["value"] if row else default
        finally:
            conn.close()

    def set_string(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO settings (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            conn.commit()
        finally:
            conn.close()

    def delete_key(self, key: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM settings WHERE key = ?", (key,))
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()


class TokenStore:
    """Stores the single OAuth token of an application.

    The token lives under `<app_name>__Auth__OAuthToken` as JSON. Writing a
    new token overwrites the previous one.
    """

    def __init__(self, settings: SettingsStore, app_name: str = "TwitchWebRequest") -> None:
        self._settings = settings
        self.key = f"{app_name}__Auth__OAuthToken"

    def has_token(self) -> bool:
        return self._settings.has_key(self.key)

    def get_oauth(self) -> Optional[OAuth]:
        """Return the stored token, or None if missing or unreadable."""
        if not self.has_token():
            return None
        try:
            return OAuth.from_json(self._settings.get_string(self.key))
        except (ValueError, TypeError) as exc:
            # json.JSONDecodeError is a ValueError
            logger.error("Could not deserialize Twitch access token from settings: %s", exc)
            return None

    def get_token(self) -> str:
        """Return the stored access token string; empty when there is none."""
        oauth = self.get_oauth()
        return oauth.access_token if oauth else ""

    def set_token(self, oauth: OAuth) -> None:
        self._settings.set_string(self.key, oauth.to_json())

    def clear_token(self) -> None:
        self._settings.delete_key(self.key)


def open_token_store(
    db_path: Optional[Path] = None, app_name: str = "TwitchWebRequest"
) -> TokenStore:
    """Convenience: settings store plus token store for `app_name`."""
    return TokenStore(SettingsStore(db_path=db_path, app_name=app_name), app_name=app_name)


