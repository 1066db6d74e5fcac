from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence
from urllib.parse import quote

from .request import TwitchRequest
from .responses import TwitchResponse, TwitchResponseCode, User, parse_users

logger = logging.getLogger(__name__)

REWARD_TITLE_MAX_LENGTH = 45
REWARD_MIN_COST = 1
PREDICTION_TITLE_MAX_LENGTH = 45
OUTCOME_TITLE_MAX_LENGTH = 25
MIN_OUTCOMES = 2
MAX_OUTCOMES = 10
MIN_PREDICTION_WINDOW = 30
MAX_PREDICTION_WINDOW = 1800
PREDICTION_STATUSES = ("RESOLVED", "CANCELED", "LOCKED")


def validate_reward(title: Optional[str] = None, cost: Optional[int] = None) -> None:
    """Raise ValueError for reward fields Twitch would reject.

    Only the fields passed are checked, so updates can validate partially.
    """
    if title is not None:
        if not title:
            raise ValueError("The reward title must not be empty.")
        if len(title) > REWARD_TITLE_MAX_LENGTH:
            raise ValueError(
                f"The reward title may contain a maximum of {REWARD_TITLE_MAX_LENGTH} characters."
            )
    if cost is not None and cost < REWARD_MIN_COST:
        raise ValueError(f"The minimum cost of a reward is {REWARD_MIN_COST}.")


def validate_prediction(title: str, outcomes: Sequence[str], prediction_window: int) -> None:
    if not title or len(title) > PREDICTION_TITLE_MAX_LENGTH:
        raise ValueError(
            f"The prediction title must have 1 to {PREDICTION_TITLE_MAX_LENGTH} characters."
        )
    if not MIN_OUTCOMES <= len(outcomes) <= MAX_OUTCOMES:
        raise ValueError(
            f"A prediction needs {MIN_OUTCOMES} to {MAX_OUTCOMES} outcomes."
        )
    for outcome in outcomes:
        if not outcome or len(outcome) > OUTCOME_TITLE_MAX_LENGTH:
            raise ValueError(
                f"Outcome titles must have 1 to {OUTCOME_TITLE_MAX_LENGTH} characters."
            )
    if not MIN_PREDICTION_WINDOW <= prediction_window <= MAX_PREDICTION_WINDOW:
        raise ValueError(
            f"The prediction window must be {MIN_PREDICTION_WINDOW} to {MAX_PREDICTION_WINDOW} seconds."
        )


class TwitchWebRequests:
    """Helix calls for one broadcaster channel.

    Call `connect()` first; it resolves the channel name to the broadcaster
    id most endpoints need. All methods return the raw `TwitchResponse` so
    the caller decides what a status code means; `parse_*` helpers in
    `twitchwebrequest.responses` turn bodies into dataclasses.
    """

    def __init__(self, channel_name: str, request: TwitchRequest) -> None:
        if not channel_name:
            raise ValueError("You need to specify a valid Twitch channel name to proceed.")
        self.channel_name = channel_name
        self.request = request
        self.broadcaster_id = ""

    async def connect(self) -> bool:
        """Look up the channel and remember its broadcaster id."""
        response = await self.get_user(self.channel_name)
        if response.status_code != TwitchResponseCode.OK:
            logger.error(
                "Error for initial web request setup when trying to get the broadcaster ID: %s",
                response.code,
            )
            self.broadcaster_id = ""
            return False

        try:
            user: User = parse_users(response.body).get_first()
        except (ValueError, IndexError) as exc:
            logger.error("No user found for channel %r: %s", self.channel_name, exc)
            self.broadcaster_id = ""
            return False

        self.broadcaster_id = user.id
        return True

    def _require_broadcaster(self) -> str:
        if not self.broadcaster_id:
            raise RuntimeError("Not connected: call connect() before this request.")
        return quote(self.broadcaster_id, safe="")

    # --- users ------------------------------------------------------------
    async def get_user(self, channel_name: str) -> TwitchResponse:
        """See https://dev.twitch.tv/docs/api/reference/#get-users"""
        return await self.request.get_async(f"users?login={quote(channel_name, safe='')}")

    # --- channel point rewards -------------------------------------------
    async def get_rewards(self) -> TwitchResponse:
        """See https://dev.twitch.tv/docs/api/reference/#get-custom-reward"""
        broadcaster = self._require_broadcaster()
        return await self.request.get_async(
            f"channel_points/custom_rewards?broadcaster_id={broadcaster}"
        )

    async def get_reward(self, reward_id: str) -> TwitchResponse:
        broadcaster = self._require_broadcaster()
        return await self.request.get_async(
            f"channel_points/custom_rewards?broadcaster_id={broadcaster}&id={quote(reward_id, safe='')}"
        )

    async def create_reward(self, title: str, cost: int, **options: Any) -> TwitchResponse:
        """Create a custom reward in the broadcaster's channel.

        The title may contain a maximum of 45 characters and must be unique
        amongst the broadcaster's rewards; the minimum cost is 1 point.
        Extra Helix fields (prompt, is_enabled, background_color, ...) pass
        through `options`.

        See https://dev.twitch.tv/docs/api/reference/#create-custom-rewards
        """
        validate_reward(title=title, cost=cost)
        broadcaster = self._require_broadcaster()
        body: Dict[str, Any] = {"title": title, "cost": int(cost)}
        body.update(options)
        return await self.request.post_async(
            f"channel_points/custom_rewards?broadcaster_id={broadcaster}", body
        )

    async def update_reward(self, reward_id: str, **fields: Any) -> TwitchResponse:
        """See https://dev.twitch.tv/docs/api/reference/#update-custom-reward"""
        if not fields:
            raise ValueError("Nothing to update.")
        validate_reward(title=fields.get("title"), cost=fields.get("cost"))
        broadcaster = self._require_broadcaster()
        return await self.request.patch_async(
            f"channel_points/custom_rewards?broadcaster_id={broadcaster}&id={quote(reward_id, safe='')}",
            fields,
        )

    async def delete_reward(self, reward_id: str) -> TwitchResponse:
        """Delete a reward; success is 204 No Content (`response.is_success`).

        See https://dev.twitch.tv/docs/api/reference/#delete-custom-reward
        """
        if not reward_id:
            raise ValueError("You need to specify the id of the reward to delete.")
        broadcaster = self._require_broadcaster()
        return await self.request.delete_async(
            f"channel_points/custom_rewards?broadcaster_id={broadcaster}&id={quote(reward_id, safe='')}"
        )

    # --- predictions ------------------------------------------------------
    async def get_predictions(self) -> TwitchResponse:
        """See https://dev.twitch.tv/docs/api/reference/#get-predictions"""
        broadcaster = self._require_broadcaster()
        return await self.request.get_async(f"predictions?broadcaster_id={broadcaster}")

    async def create_prediction(
        self, title: str, outcomes: Sequence[str], prediction_window: int
    ) -> TwitchResponse:
        """See https://dev.twitch.tv/docs/api/reference/#create-prediction"""
        validate_prediction(title, outcomes, prediction_window)
        self._require_broadcaster()
        body = {
            "broadcaster_id": self.broadcaster_id,
            "title": title,
            "outcomes": [{"title": o} for o in outcomes],
            "prediction_window": int(prediction_window),
        }
        return await self.request.post_async("predictions", body)

    async def resolve_prediction(
        self,
        prediction_id: str,
        status: str = "RESOLVED",
        winning_outcome_id: Optional[str] = None,
    ) -> TwitchResponse:
        """End, cancel or lock a prediction.

        RESOLVED needs the id of the winning outcome.
        See https://dev.twitch.tv/docs/api/reference/#end-prediction
        """
        status = status.upper()
        if status not in PREDICTION_STATUSES:
            raise ValueError(f"status must be one of {', '.join(PREDICTION_STATUSES)}")
        if status == "RESOLVED" and not winning_outcome_id:
            raise ValueError("A resolved prediction needs a winning outcome id.")
        self._require_broadcaster()
        body: Dict[str, Any] = {
            "broadcaster_id": self.broadcaster_id,
            "id": prediction_id,
            "status": status,
        }
        if winning_outcome_id:
            body["winning_outcome_id"] = winning_outcome_id
        return await self.request.patch_async("predictions", body)
