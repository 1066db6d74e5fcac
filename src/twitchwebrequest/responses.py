from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Generic, List, NamedTuple, Optional, TypeVar, Union


class TwitchResponseCode(enum.IntEnum):
    """Status codes the Twitch API answers with.

    NO_RESPONSE is not an HTTP status: it marks a request that never got a
    response (DNS failure, timeout, refused connection).
    """

    NO_RESPONSE = 0
    OK = 200
    NO_CONTENT = 204
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422
    TOO_EARLY = 425
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500


class TwitchResponse(NamedTuple):
    status_code: int
    body: str

    @property
    def code(self) -> Union[TwitchResponseCode, int]:
        try:
            return TwitchResponseCode(self.status_code)
        except ValueError:
            return self.status_code

    @property
    def ok(self) -> bool:
        return self.status_code == TwitchResponseCode.OK

    @property
    def is_success(self) -> bool:
        # DELETE answers 204 No Content
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return json.loads(self.body)


def _from_dict(cls, data: Optional[Dict[str, Any]]):
    # keep only keys the dataclass knows; Twitch adds fields over time
    data = data or {}
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


T = TypeVar("T")


@dataclass
class Data(Generic[T]):
    """Wrapper for the {"data": [...]} envelope of Helix responses."""

    data: List[T] = field(default_factory=list)

    def get_first(self) -> T:
        if not self.data:
            raise IndexError("response contains no data")
        return self.data[0]


# See https://dev.twitch.tv/docs/api/reference#get-users
@dataclass
class User:
    id: str = ""
    login: str = ""
    display_name: str = ""
    type: str = ""
    broadcaster_type: str = ""
    description: str = ""
    profile_image_url: str = ""
    offline_image_url: str = ""
    view_count: int = 0
    email: str = ""
    created_at: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "User":
        return _from_dict(cls, data)


@dataclass
class Image:
    url_1x: str = ""
    url_2x: str = ""
    url_4x: str = ""


@dataclass
class MaxSetting:
    is_enabled: bool = False
    max_per_stream: int = 0
    max_per_user_per_stream: int = 0


@dataclass
class Cooldown:
    is_enabled: bool = False
    global_cooldown_seconds: int = 0


# See https://dev.twitch.tv/docs/api/reference#get-custom-reward
@dataclass
class Reward:
    broadcaster_id: str = ""
    broadcaster_login: str = ""
    broadcaster_name: str = ""
    id: str = ""
    title: str = ""
    prompt: str = ""
    cost: int = 0
    image: Optional[Image] = None
    default_image: Optional[Image] = None
    background_color: str = ""
    is_enabled: bool = True
    is_user_input_required: bool = False
    max_per_stream_setting: Optional[MaxSetting] = None
    max_per_user_per_stream_setting: Optional[MaxSetting] = None
    global_cooldown_setting: Optional[Cooldown] = None
    is_paused: bool = False
    is_in_stock: bool = True
    should_redemptions_skip_request_queue: bool = False
    redemptions_redeemed_current_stream: Optional[int] = None
    cooldown_expires_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Reward":
        reward = _from_dict(cls, data)
        if isinstance(reward.image, dict):
            reward.image = _from_dict(Image, reward.image)
        if isinstance(reward.default_image, dict):
            reward.default_image = _from_dict(Image, reward.default_image)
        if isinstance(reward.max_per_stream_setting, dict):
            reward.max_per_stream_setting = _from_dict(
                MaxSetting, reward.max_per_stream_setting
            )
        if isinstance(reward.max_per_user_per_stream_setting, dict):
            reward.max_per_user_per_stream_setting = _from_dict(
                MaxSetting, reward.max_per_user_per_stream_setting
            )
        if isinstance(reward.global_cooldown_setting, dict):
            reward.global_cooldown_setting = _from_dict(
                Cooldown, reward.global_cooldown_setting
            )
        return reward


@dataclass
class Outcome:
    id: str = ""
    title: str = ""
    users: int = 0
    channel_points: int = 0
    color: str = ""
    top_predictors: Optional[List[Dict[str, Any]]] = None


# See https://dev.twitch.tv/docs/api/reference#get-predictions
@dataclass
class Prediction:
    id: str = ""
    broadcaster_id: str = ""
    broadcaster_name: str = ""
    broadcaster_login: str = ""
    title: str = ""
    winning_outcome_id: Optional[str] = None
    outcomes: List[Outcome] = field(default_factory=list)
    prediction_window: int = 0
    status: str = ""
    created_at: str = ""
    ended_at: Optional[str] = None
    locked_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Prediction":
        prediction = _from_dict(cls, data)
        prediction.outcomes = [
            o if isinstance(o, Outcome) else _from_dict(Outcome, o)
            for o in (prediction.outcomes or [])
        ]
        return prediction


def parse_users(body: str) -> Data[User]:
    payload = json.loads(body) if body else {}
    return Data([User.from_dict(u) for u in payload.get("data") or []])


def parse_rewards(body: str) -> Data[Reward]:
    payload = json.loads(body) if body else {}
    return Data([Reward.from_dict(r) for r in payload.get("data") or []])


def parse_predictions(body: str) -> Data[Prediction]:
    payload = json.loads(body) if body else {}
    return Data([Prediction.from_dict(p) for p in payload.get("data") or []])
