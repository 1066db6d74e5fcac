from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple
from urllib.parse import urlencode, quote

# See https://dev.twitch.tv/docs/authentication/scopes/
CHAT_READ = "chat:read"
CHAT_EDIT = "chat:edit"
USER_READ_SUBSCRIPTIONS = "user:read:subscriptions"
CHANNEL_READ_REDEMPTIONS = "channel:read:redemptions"
CHANNEL_MANAGE_REDEMPTIONS = "channel:manage:redemptions"
CHANNEL_MANAGE_POLLS = "channel:manage:polls"
CHANNEL_MANAGE_PREDICTIONS = "channel:manage:predictions"

DEFAULT_REDIRECT_URL = "http://localhost"
AUTHORIZE_URL = "https://id.twitch.tv/oauth2/authorize"


class AuthenticationStatus(enum.Enum):
    UNKNOWN = "unknown"
    WAITING = "waiting"
    AUTHENTICATED = "authenticated"


@dataclass
class OAuth:
    """Access token captured from the implicit-grant redirect.

    The JSON form mirrors what the loopback page posts back:
    {"accessToken": ..., "scope": ..., "state": ...}
    """

    access_token: str
    scope: str = ""
    state: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "accessToken": self.access_token,
            "scope": self.scope,
            "state": self.state,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OAuth":
        if not isinstance(data, dict):
            raise ValueError("token payload must be a JSON object")
        return cls(
            access_token=str(data.get("accessToken") or ""),
            scope=str(data.get("scope") or ""),
            state=str(data.get("state") or ""),
        )

    @classmethod
    def from_json(cls, text: str) -> "OAuth":
        return cls.from_dict(json.loads(text))


@dataclass(frozen=True)
class ConnectionInformation:
    """What the authorize redirect needs: client id, redirect target and scopes."""

    client_id: str
    scopes: Tuple[str, ...] = field(default=())
    redirect_url: str = DEFAULT_REDIRECT_URL

    @classmethod
    def create(
        cls,
        client_id: str,
        scopes: Iterable[str],
        redirect_url: str = DEFAULT_REDIRECT_URL,
    ) -> "ConnectionInformation":
        return cls(client_id=client_id, scopes=tuple(scopes), redirect_url=redirect_url)

    @property
    def permission_scope(self) -> str:
        return " ".join(self.scopes)

    def authorize_url(self) -> str:
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_url,
                "response_type": "token",
                "scope": self.permission_scope,
            },
            quote_via=quote,
        )
        return f"{AUTHORIZE_URL}?{query}"
