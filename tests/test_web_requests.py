import json

import httpx
import pytest

from twitchwebrequest.request import TwitchRequest
from twitchwebrequest.web_requests import TwitchWebRequests, validate_reward

USER_BODY = '{"data": [{"id": "274637212", "login": "torpedo09"}]}'


class FakeTwitch:
    """Records requests and answers with queued responses."""

    def __init__(self, *responses):
        self.requests = []
        self.responses = list(responses)

    def __call__(self, request):
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return httpx.Response(200, text='{"data": []}')


def make_api(twitch, channel="torpedo09"):
    request = TwitchRequest("cid", lambda: "tok", transport=httpx.MockTransport(twitch))
    return TwitchWebRequests(channel, request)


@pytest.mark.parametrize("channel", ["", None])
def test_empty_channel_fails_without_network(channel):
    twitch = FakeTwitch()
    with pytest.raises(ValueError):
        make_api(twitch, channel=channel)
    assert twitch.requests == []


@pytest.mark.asyncio
async def test_connect_resolves_broadcaster_id():
    twitch = FakeTwitch(httpx.Response(200, text=USER_BODY))
    api = make_api(twitch)

    assert await api.connect() is True
    assert api.broadcaster_id == "274637212"
    assert str(twitch.requests[0].url) == "https://api.twitch.tv/helix/users?login=torpedo09"


@pytest.mark.asyncio
async def test_connect_failure_clears_broadcaster_id():
    api = make_api(FakeTwitch(httpx.Response(401, text="{}")))
    api.broadcaster_id = "stale"
    assert await api.connect() is False
    assert api.broadcaster_id == ""

    api = make_api(FakeTwitch(httpx.Response(200, text='{"data": []}')))
    assert await api.connect() is False
    assert api.broadcaster_id == ""


@pytest.mark.asyncio
async def test_requests_need_connect_first():
    twitch = FakeTwitch()
    api = make_api(twitch)
    with pytest.raises(RuntimeError):
        await api.get_rewards()
    assert twitch.requests == []


@pytest.mark.parametrize(
    "title,cost",
    [
        ("a" * 46, 10),
        ("valid", 0),
        ("valid", -5),
        ("", 10),
    ],
)
@pytest.mark.asyncio
async def test_create_reward_validation_blocks_request(title, cost):
    twitch = FakeTwitch()
    api = make_api(twitch)
    api.broadcaster_id = "274637212"

    with pytest.raises(ValueError):
        await api.create_reward(title, cost)
    assert twitch.requests == []


@pytest.mark.asyncio
async def test_create_reward_boundaries_are_valid():
    twitch = FakeTwitch()
    api = make_api(twitch)
    api.broadcaster_id = "274637212"

    result = await api.create_reward("a" * 45, 1, prompt="Say hi")

    assert result.ok
    req = twitch.requests[0]
    assert req.method == "POST"
    assert str(req.url).endswith("channel_points/custom_rewards?broadcaster_id=274637212")
    assert json.loads(req.content) == {"title": "a" * 45, "cost": 1, "prompt": "Say hi"}


def test_validate_reward_partial():
    validate_reward(title="only title")
    validate_reward(cost=1)
    with pytest.raises(ValueError):
        validate_reward(cost=0)


@pytest.mark.asyncio
async def test_get_rewards_and_single_reward():
    twitch = FakeTwitch()
    api = make_api(twitch)
    api.broadcaster_id = "274637212"

    await api.get_rewards()
    await api.get_reward("reward-1")

    urls = [str(r.url) for r in twitch.requests]
    assert urls == [
        "https://api.twitch.tv/helix/channel_points/custom_rewards?broadcaster_id=274637212",
        "https://api.twitch.tv/helix/channel_points/custom_rewards?broadcaster_id=274637212&id=reward-1",
    ]


@pytest.mark.asyncio
async def test_delete_reward_204_is_success():
    twitch = FakeTwitch(httpx.Response(204))
    api = make_api(twitch)
    api.broadcaster_id = "274637212"

    result = await api.delete_reward("reward-1")

    assert result.status_code == 204
    assert not result.ok
    assert result.is_success
    assert twitch.requests[0].method == "DELETE"


@pytest.mark.asyncio
async def test_update_reward_uses_patch():
    twitch = FakeTwitch()
    api = make_api(twitch)
    api.broadcaster_id = "274637212"

    await api.update_reward("reward-1", is_paused=True, cost=20)

    req = twitch.requests[0]
    assert req.method == "PATCH"
    assert json.loads(req.content) == {"is_paused": True, "cost": 20}

    with pytest.raises(ValueError):
        await api.update_reward("reward-1", title="x" * 46)
    with pytest.raises(ValueError):
        await api.update_reward("reward-1")
    assert len(twitch.requests) == 1


@pytest.mark.asyncio
async def test_create_prediction_body():
    twitch = FakeTwitch()
    api = make_api(twitch)
    api.broadcaster_id = "274637212"

    await api.create_prediction("Will we win?", ["Yes", "No"], 120)

    req = twitch.requests[0]
    assert req.method == "POST"
    assert str(req.url) == "https://api.twitch.tv/helix/predictions"
    assert json.loads(req.content) == {
        "broadcaster_id": "274637212",
        "title": "Will we win?",
        "outcomes": [{"title": "Yes"}, {"title": "No"}],
        "prediction_window": 120,
    }


@pytest.mark.parametrize(
    "title,outcomes,window",
    [
        ("t" * 46, ["a", "b"], 120),
        ("ok", ["only one"], 120),
        ("ok", [str(i) for i in range(11)], 120),
        ("ok", ["a", "b" * 26], 120),
        ("ok", ["a", "b"], 29),
        ("ok", ["a", "b"], 1801),
    ],
)
@pytest.mark.asyncio
async def test_create_prediction_validation(title, outcomes, window):
    twitch = FakeTwitch()
    api = make_api(twitch)
    api.broadcaster_id = "274637212"
    with pytest.raises(ValueError):
        await api.create_prediction(title, outcomes, window)
    assert twitch.requests == []


@pytest.mark.asyncio
async def test_resolve_prediction():
    twitch = FakeTwitch()
    api = make_api(twitch)
    api.broadcaster_id = "274637212"

    await api.resolve_prediction("pred-1", "resolved", "outcome-1")
    await api.resolve_prediction("pred-1", "CANCELED")

    first, second = (json.loads(r.content) for r in twitch.requests)
    assert twitch.requests[0].method == "PATCH"
    assert first == {
        "broadcaster_id": "274637212",
        "id": "pred-1",
        "status": "RESOLVED",
        "winning_outcome_id": "outcome-1",
    }
    assert second == {"broadcaster_id": "274637212", "id": "pred-1", "status": "CANCELED"}

    with pytest.raises(ValueError):
        await api.resolve_prediction("pred-1", "RESOLVED")
    with pytest.raises(ValueError):
        await api.resolve_prediction("pred-1", "ACTIVE")


@pytest.mark.asyncio
async def test_get_predictions():
    twitch = FakeTwitch()
    api = make_api(twitch)
    api.broadcaster_id = "274637212"
    await api.get_predictions()
    assert str(twitch.requests[0].url) == "https://api.twitch.tv/helix/predictions?broadcaster_id=274637212"
