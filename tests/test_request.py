import json

import httpx
import pytest

from twitchwebrequest.request import TwitchRequest
from twitchwebrequest.responses import TwitchResponseCode


def make_request(handler, token="tok"):
    return TwitchRequest(
        "client-123", lambda: token, transport=httpx.MockTransport(handler)
    )


def test_get_sends_auth_headers():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text='{"data": []}')

    result = make_request(handler).get("users?login=somebody")

    assert result.status_code == 200
    assert result.ok
    assert result.json() == {"data": []}
    req = seen[0]
    assert str(req.url) == "https://api.twitch.tv/helix/users?login=somebody"
    assert req.headers["Client-Id"] == "client-123"
    assert req.headers["Authorization"] == "Bearer tok"
    assert "Content-Type" not in req.headers


def test_post_sends_json_body():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text="{}")

    make_request(handler).post("channel_points/custom_rewards?broadcaster_id=1", {"title": "t", "cost": 5})

    req = seen[0]
    assert req.method == "POST"
    assert req.headers["Content-Type"] == "application/json"
    assert json.loads(req.content) == {"title": "t", "cost": 5}


def test_patch_is_native_patch():
    seen = []

    def handler(request):
        seen.append(request.method)
        return httpx.Response(200, text="{}")

    req = make_request(handler)
    req.patch("predictions", '{"status": "LOCKED"}')
    req.put("predictions", {"status": "LOCKED"})
    req.delete("predictions?id=1")

    assert seen == ["PATCH", "PUT", "DELETE"]


def test_error_status_is_returned_not_raised():
    def handler(request):
        return httpx.Response(401, text='{"error": "Unauthorized"}')

    result = make_request(handler).get("users")
    assert result.status_code == 401
    assert result.code is TwitchResponseCode.UNAUTHORIZED
    assert not result.is_success
    assert "Unauthorized" in result.body


def test_empty_error_body_falls_back_to_reason():
    def handler(request):
        return httpx.Response(404)

    result = make_request(handler).delete("channel_points/custom_rewards?id=x")
    assert result.status_code == 404
    assert result.body == "Not Found"


def test_transport_failure_yields_status_zero():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = make_request(handler).get("users")
    assert result.status_code == 0
    assert result.code is TwitchResponseCode.NO_RESPONSE
    assert "connection refused" in result.body


def test_unknown_status_code_stays_int():
    def handler(request):
        return httpx.Response(418, text="teapot")

    result = make_request(handler).get("users")
    assert result.code == 418
    assert not isinstance(result.code, TwitchResponseCode)


def test_token_is_read_per_request():
    tokens = iter(["first", "second"])
    seen = []

    def handler(request):
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, text="{}")

    req = TwitchRequest("cid", lambda: next(tokens), transport=httpx.MockTransport(handler))
    req.get("users")
    req.get("users")
    assert seen == ["Bearer first", "Bearer second"]


def test_submit_returns_future():
    def handler(request):
        return httpx.Response(204)

    with make_request(handler) as req:
        future = req.submit("DELETE", "channel_points/custom_rewards?id=1")
        result = future.result(timeout=5)

    assert result.status_code == 204
    assert result.is_success
    assert not result.ok


@pytest.mark.asyncio
async def test_async_flavour():
    seen = []

    def handler(request):
        seen.append((request.method, request.headers["Authorization"]))
        return httpx.Response(200, text='{"data": [{"id": "1"}]}')

    req = make_request(handler)
    result = await req.get_async("users?login=x")
    await req.patch_async("predictions", {"id": "p"})

    assert result.json()["data"][0]["id"] == "1"
    assert seen == [("GET", "Bearer tok"), ("PATCH", "Bearer tok")]


@pytest.mark.asyncio
async def test_async_transport_failure():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = await make_request(handler).post_async("predictions", {})
    assert result.status_code == 0
    assert "timed out" in result.body


def test_for_authentication_reads_client_and_token(token_store, connection):
    from twitchwebrequest.authentication import TwitchAuthentication
    from twitchwebrequest.models import OAuth

    token_store.set_token(OAuth(access_token="stored-token"))
    auth = TwitchAuthentication(token_store)
    assert auth.start_validation(connection) is True

    seen = []

    def handler(request):
        seen.append(request.headers)
        return httpx.Response(200, text="{}")

    req = TwitchRequest.for_authentication(auth, transport=httpx.MockTransport(handler))
    req.get("users")

    assert seen[0]["Client-Id"] == "client-123"
    assert seen[0]["Authorization"] == "Bearer stored-token"


def test_for_authentication_built_before_validation(token_store, connection):
    from twitchwebrequest.authentication import TwitchAuthentication
    from twitchwebrequest.models import OAuth

    token_store.set_token(OAuth(access_token="stored-token"))
    auth = TwitchAuthentication(token_store)
    seen = []

    def handler(request):
        seen.append(request.headers)
        return httpx.Response(200, text="{}")

    req = TwitchRequest.for_authentication(auth, transport=httpx.MockTransport(handler))
    assert req.client_id == ""

    assert auth.start_validation(connection) is True
    req.get("users")

    assert req.client_id == "client-123"
    assert seen[0]["Client-Id"] == "client-123"
    assert seen[0]["Authorization"] == "Bearer stored-token"
