"""Loopback HTTP listener capturing a Twitch implicit-grant token.

Twitch redirects the browser to `http://localhost/#access_token=...`. The
fragment never reaches a server, so the listener answers every GET with a
small page whose script reads the fragment and POSTs it back as JSON:

  {"accessToken": "...", "scope": "...", "state": "..."}

The POST completes a one-shot future handed out by `LoopbackListener.start`.
The HTTP side is a FastAPI app served by uvicorn on a daemon thread, on
sockets bound before the thread starts so bind errors surface to the caller.
"""

from __future__ import annotations

import logging
import os
import socket
import threading
import time
import webbrowser
from concurrent.futures import Future, InvalidStateError
from typing import Callable, List, Optional
from urllib.parse import urlparse

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse

from .models import AuthenticationStatus, ConnectionInformation, OAuth

logger = logging.getLogger(__name__)

BRIDGE_PAGE = """<!doctype html>
<html>
<head>
<meta charset="utf-8">
<title>Twitch authentication</title>
<script>
window.addEventListener("load", function () {
  var hash = window.location.hash;
  if (!hash || hash.length < 2) {
    return;
  }
  var params = new URLSearchParams(hash.substring(1));
  var data = {
    accessToken: params.get("access_token"),
    scope: params.get("scope"),
    state: params.get("state")
  };
  fetch("/", {
    method: "POST",
    headers: {"Content-Type": "application/json"},
    body: JSON.stringify(data)
  }).then(function (response) {
    console.log(response);
    window.close();
  }).catch(function (error) {
    console.log(error);
    window.close();
  });
});
</script>
</head>
<body>
<p>Authentication complete. You can close this window.</p>
</body>
</html>
"""


def create_app(on_token: Callable[[OAuth], None]) -> FastAPI:
    """Create the app answering the browser redirect.

    `on_token` is called with the parsed token for every valid POST.
    """
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/{path:path}")
    async def bridge(path: str):
        return HTMLResponse(BRIDGE_PAGE)

    @app.post("/{path:path}")
    async def receive_token(request: Request, path: str):
        raw = await request.body()
        try:
            oauth = OAuth.from_json(raw.decode("utf-8"))
        except ValueError as exc:
            # UnicodeDecodeError and JSONDecodeError are both ValueErrors
            logger.warning("Ignoring malformed token post: %s", exc)
            return HTMLResponse(BRIDGE_PAGE, status_code=400)
        if not oauth.access_token:
            logger.warning("Ignoring token post without an access token")
            return HTMLResponse(BRIDGE_PAGE, status_code=400)

        on_token(oauth)
        return HTMLResponse(BRIDGE_PAGE)

    return app


def redirect_port(redirect_url: str) -> int:
    parsed = urlparse(redirect_url)
    if parsed.port is not None:
        return parsed.port
    return 443 if parsed.scheme == "https" else 80


class LoopbackListener:
    """One-shot listener for a single authorization attempt.

    Usage:
      listener = LoopbackListener()
      future = listener.start(connection)
      try:
          oauth = future.result(timeout=10)
      finally:
          listener.stop()
    """

    def __init__(
        self,
        port: Optional[int] = None,
        open_browser: Callable[[str], object] = webbrowser.open,
        startup_timeout: float = 5.0,
        shutdown_timeout: float = 5.0,
    ) -> None:
        # None means: use the port of the connection's redirect url
        self._port = port
        self._open_browser = open_browser
        self._startup_timeout = startup_timeout
        self._shutdown_timeout = shutdown_timeout
        self._lock = threading.Lock()
        self._status = AuthenticationStatus.UNKNOWN
        self._future: "Future[OAuth]" = Future()
        self._sockets: List[socket.socket] = []
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def status(self) -> AuthenticationStatus:
        return self._status

    @property
    def result(self) -> "Future[OAuth]":
        return self._future

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, once started."""
        if not self._sockets:
            return None
        return self._sockets[0].getsockname()[1]

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, connection: ConnectionInformation) -> "Future[OAuth]":
        """Bind, serve on a background thread and open the authorize page.

        Raises OSError when the loopback port cannot be bound or the server
        does not come up.
        """
        if self._thread is not None:
            raise RuntimeError("listener already started")

        port = self._port if self._port is not None else redirect_port(connection.redirect_url)
        self._sockets = self._bind(port)

        config = uvicorn.Config(
            create_app(self._capture),
            log_config=None,
            log_level="warning",
            access_log=False,
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={"sockets": self._sockets},
            name="twitch-oauth-listener",
            daemon=True,
        )
        self._thread.start()

        deadline = time.monotonic() + self._startup_timeout
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() >= deadline:
                self.stop()
                raise OSError("loopback listener failed to start")
            time.sleep(0.01)

        self._status = AuthenticationStatus.WAITING
        logger.info("Listening for the Twitch redirect on port %s", self.port)

        url = connection.authorize_url()
        try:
            opened = self._open_browser(url)
        except webbrowser.Error as exc:
            opened = False
            logger.warning("Could not open the browser: %s", exc)
        if opened is False:
            logger.warning("Open this URL in your browser to authorize: %s", url)

        return self._future

    def stop(self) -> None:
        """Shut the server down and release the sockets. Safe to call repeatedly."""
        server, thread = self._server, self._thread
        if server is not None:
            server.should_exit = True
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=self._shutdown_timeout)
            if thread.is_alive():
                logger.warning("Loopback listener thread did not stop in time")
        for sock in self._sockets:
            sock.close()
        self._sockets = []
        self._server = None
        self._thread = None

        with self._lock:
            if self._status is not AuthenticationStatus.AUTHENTICATED:
                self._status = AuthenticationStatus.UNKNOWN
        # nobody will complete the future once the server is gone
        self._future.cancel()

    def _capture(self, oauth: OAuth) -> None:
        with self._lock:
            try:
                self._future.set_result(oauth)
            except InvalidStateError:
                logger.debug("Token already captured or listener stopped; ignoring post")
                return
            self._status = AuthenticationStatus.AUTHENTICATED
        logger.info("Captured Twitch access token from the browser redirect")

    @staticmethod
    def _bind(port: int) -> List[socket.socket]:
        sockets: List[socket.socket] = []

        v4 = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            if os.name != "nt":
                v4.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            v4.bind(("127.0.0.1", port))
            v4.listen(16)
        except OSError:
            v4.close()
            raise
        sockets.append(v4)

        # `localhost` may resolve to ::1 first; serve it too when available
        if socket.has_ipv6:
            bound_port = v4.getsockname()[1]
            v6 = socket.socket(socket.AF_INET6, socket.SOCK_STREAM)
            try:
                v6.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
                if os.name != "nt":
                    v6.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                v6.bind(("::1", bound_port))
                v6.listen(16)
            except OSError as exc:
                v6.close()
                logger.debug("IPv6 loopback unavailable: %s", exc)
            else:
                sockets.append(v6)

        return sockets
