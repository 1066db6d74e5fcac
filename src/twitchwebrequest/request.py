from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, Union

import httpx

from .responses import TwitchResponse, TwitchResponseCode

logger = logging.getLogger(__name__)

HELIX_URL = "https://api.twitch.tv/helix/"
REQUEST_TIMEOUT = 10.0

Body = Union[None, str, bytes, dict, list]


def _encode_body(body: Body) -> Optional[bytes]:
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


class TwitchRequest:
    """Send requests to the Helix API with the Client-Id and Bearer headers.

    Every verb comes in three flavours:
      - blocking: `get`, `post`, `put`, `patch`, `delete`
      - future-based: `submit(method, uri, body)` returns a
        `concurrent.futures.Future[TwitchResponse]`
      - asyncio: `get_async`, `post_async`, ... (await them)

    Results are `TwitchResponse(status_code, body)`. A request that got no
    HTTP response at all yields status 0 and the error text. Nothing is
    retried and transport errors are not raised.
    """

    def __init__(
        self,
        client_id: Union[str, Callable[[], str]],
        token_provider: Callable[[], str],
        base_url: str = HELIX_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[Any] = None,
        max_workers: int = 4,
    ) -> None:
        # a callable is resolved on every request, like the token
        self._client_id = client_id
        self._token_provider = token_provider
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        # tests pass an httpx.MockTransport; it serves sync and async clients
        self._transport = transport
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def for_authentication(cls, auth, **kwargs) -> "TwitchRequest":
        """Build a request helper reading client id and token from `auth`."""
        return cls(lambda: auth.client_id, lambda: auth.access_token, **kwargs)

    @property
    def client_id(self) -> str:
        return self._client_id() if callable(self._client_id) else self._client_id

    def build_url(self, uri: str) -> str:
        return self.base_url + uri.lstrip("/")

    def _headers(self, has_body: bool) -> dict:
        headers = {
            "Client-Id": self.client_id,
            "Authorization": f"Bearer {self._token_provider()}",
        }
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    # --- blocking ---------------------------------------------------------
    def request(self, method: str, uri: str, body: Body = None) -> TwitchResponse:
        content = _encode_body(body)
        logger.debug("TwitchRequest: %s '%s'...", method, uri)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.request(
                    method,
                    self.build_url(uri),
                    content=content,
                    headers=self._headers(content is not None),
                )
        except httpx.HTTPError as exc:
            return self._no_response(method, exc)
        return self._to_response(method, resp)

    def get(self, uri: str) -> TwitchResponse:
        return self.request("GET", uri)

    def post(self, uri: str, body: Body) -> TwitchResponse:
        return self.request("POST", uri, body)

    def put(self, uri: str, body: Body) -> TwitchResponse:
        return self.request("PUT", uri, body)

    def patch(self, uri: str, body: Body) -> TwitchResponse:
        return self.request("PATCH", uri, body)

    def delete(self, uri: str) -> TwitchResponse:
        return self.request("DELETE", uri)

    # --- future-based -----------------------------------------------------
    def submit(self, method: str, uri: str, body: Body = None) -> "Future[TwitchResponse]":
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="twitch-request"
            )
        return self._executor.submit(self.request, method, uri, body)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "TwitchRequest":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # --- asyncio ----------------------------------------------------------
    async def request_async(self, method: str, uri: str, body: Body = None) -> TwitchResponse:
        content = _encode_body(body)
        logger.debug("TwitchRequest: %s '%s'...", method, uri)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(
                    method,
                    self.build_url(uri),
                    content=content,
                    headers=self._headers(content is not None),
                )
        except httpx.HTTPError as exc:
            return self._no_response(method, exc)
        return self._to_response(method, resp)

    async def get_async(self, uri: str) -> TwitchResponse:
        return await self.request_async("GET", uri)

    async def post_async(self, uri: str, body: Body) -> TwitchResponse:
        return await self.request_async("POST", uri, body)

    async def put_async(self, uri: str, body: Body) -> TwitchResponse:
        return await self.request_async("PUT", uri, body)

    async def patch_async(self, uri: str, body: Body) -> TwitchResponse:
        return await self.request_async("PATCH", uri, body)

    async def delete_async(self, uri: str) -> TwitchResponse:
        return await self.request_async("DELETE", uri)

    # --- helpers ----------------------------------------------------------
    @staticmethod
    def _to_response(method: str, resp: httpx.Response) -> TwitchResponse:
        result = TwitchResponse(resp.status_code, resp.text)
        if not result.is_success:
            logger.warning(
                "TwitchRequest ERROR from %s method: response code %s, body %r",
                method,
                result.code,
                resp.text,
            )
            if not resp.text:
                return TwitchResponse(resp.status_code, resp.reason_phrase)
        return result

    @staticmethod
    def _no_response(method: str, exc: Exception) -> TwitchResponse:
        logger.warning("TwitchRequest ERROR from %s method: %s", method, exc)
        return TwitchResponse(int(TwitchResponseCode.NO_RESPONSE), str(exc) or type(exc).__name__)
