"""TwitchWebRequest package.

Authenticate against Twitch with the implicit grant through a loopback
listener, keep the token in local settings, and call the Helix API.
"""

from typing import List

from .authentication import AuthenticationEvent, TwitchAuthentication
from .config import Config
from .local_storage import SettingsStore, TokenStore, open_token_store
from .loopback import LoopbackListener
from .models import AuthenticationStatus, ConnectionInformation, OAuth
from .request import TwitchRequest
from .responses import TwitchResponse, TwitchResponseCode
from .web_requests import TwitchWebRequests

__all__: List[str] = [
    "AuthenticationEvent",
    "AuthenticationStatus",
    "Config",
    "ConnectionInformation",
    "LoopbackListener",
    "OAuth",
    "SettingsStore",
    "TokenStore",
    "TwitchAuthentication",
    "TwitchRequest",
    "TwitchResponse",
    "TwitchResponseCode",
    "TwitchWebRequests",
    "open_token_store",
]
