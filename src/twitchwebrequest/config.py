from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from .models import CHANNEL_MANAGE_REDEMPTIONS, DEFAULT_REDIRECT_URL, ConnectionInformation


@dataclass
class Config:
    """Centralized runtime configuration for TwitchWebRequest.

    - client_id: Twitch application client id used for the Client-Id header.
    - channel: channel (login) name the API facade connects to.
    - scopes: OAuth scopes requested during authentication.
    - settings_path: Optional path to the settings DB. If None, the token
      store uses the OS-appropriate default.
    """

    client_id: str = ""
    channel: str = ""
    scopes: Tuple[str, ...] = field(default=(CHANNEL_MANAGE_REDEMPTIONS,))
    redirect_url: str = DEFAULT_REDIRECT_URL
    app_name: str = "TwitchWebRequest"
    settings_path: Optional[Path] = None
    auth_timeout: float = 10.0
    request_timeout: float = 10.0

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "Config":
        # a local .env is a development convenience; real env vars win
        load_dotenv(dotenv_path)

        scopes = os.environ.get("TWITCH_SCOPES", CHANNEL_MANAGE_REDEMPTIONS).split()
        settings = os.environ.get("TWITCHWEBREQUEST_SETTINGS_PATH")
        return cls(
            client_id=os.environ.get("TWITCH_CLIENT_ID", ""),
            channel=os.environ.get("TWITCH_CHANNEL", ""),
            scopes=tuple(scopes),
            redirect_url=os.environ.get("TWITCH_REDIRECT_URL", DEFAULT_REDIRECT_URL),
            app_name=os.environ.get("TWITCHWEBREQUEST_APP_NAME", "TwitchWebRequest"),
            settings_path=Path(settings) if settings else None,
            auth_timeout=float(os.environ.get("TWITCHWEBREQUEST_AUTH_TIMEOUT", "10")),
            request_timeout=float(
                os.environ.get("TWITCHWEBREQUEST_REQUEST_TIMEOUT", "10")
            ),
        )

    def connection_information(self) -> ConnectionInformation:
        return ConnectionInformation(
            client_id=self.client_id,
            scopes=tuple(self.scopes),
            redirect_url=self.redirect_url,
        )
