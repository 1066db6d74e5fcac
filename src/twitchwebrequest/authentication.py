from __future__ import annotations

import asyncio
import logging
import threading
import webbrowser
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, List, Optional

from .local_storage import TokenStore
from .loopback import LoopbackListener
from .models import AuthenticationStatus, ConnectionInformation, OAuth

logger = logging.getLogger(__name__)

AUTHENTICATION_TIMEOUT = 10.0


class AuthenticationEvent:
    """Notification carrying the outcome of an authentication attempt.

    Any number of callbacks may subscribe. A callback that raises is logged
    and the remaining callbacks still run.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: List[Callable[[bool], None]] = []

    def subscribe(self, listener: Callable[[bool], None]) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[bool], None]) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def emit(self, success: bool) -> None:
        with self._lock:
            listeners = list(self._listeners)
        # notify outside the lock so listeners may (un)subscribe
        for listener in listeners:
            try:
                listener(success)
            except Exception:
                logger.exception("on_authenticated listener failed")

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)


class TwitchAuthentication:
    """Obtain and keep the Twitch user token of one application.

    States: UNKNOWN -> WAITING -> AUTHENTICATED, or WAITING -> UNKNOWN when
    the attempt fails or times out. A non-empty stored token counts as
    authenticated; it is not re-validated against Twitch.

    Usage:
      auth = TwitchAuthentication(open_token_store())
      auth.on_authenticated.subscribe(lambda ok: print("authenticated:", ok))
      auth.start_validation(ConnectionInformation.create(client_id, [CHANNEL_MANAGE_REDEMPTIONS]))
    """

    def __init__(
        self,
        token_store: TokenStore,
        listener_factory: Optional[Callable[[], LoopbackListener]] = None,
        open_browser: Callable[[str], object] = webbrowser.open,
        timeout: float = AUTHENTICATION_TIMEOUT,
    ) -> None:
        self._store = token_store
        self._listener_factory = listener_factory or (
            lambda: LoopbackListener(open_browser=open_browser)
        )
        self.timeout = timeout
        self.on_authenticated = AuthenticationEvent()
        self._connection: Optional[ConnectionInformation] = None
        self._listener: Optional[LoopbackListener] = None
        self._status = self._status_from_storage()

    @property
    def status(self) -> AuthenticationStatus:
        return self._status

    @property
    def connection(self) -> Optional[ConnectionInformation]:
        return self._connection

    @property
    def client_id(self) -> str:
        return self._connection.client_id if self._connection else ""

    @property
    def access_token(self) -> str:
        return self._store.get_token()

    def is_authenticated(self) -> bool:
        return self._status is AuthenticationStatus.AUTHENTICATED

    def reset(self) -> None:
        """Forget the stored token, whatever the current state."""
        self._store.clear_token()
        self._status = AuthenticationStatus.UNKNOWN

    def start_validation(self, connection: ConnectionInformation) -> bool:
        """Authenticate, blocking until the browser answers or the timeout ends."""
        if not self._prepare(connection):
            return self.is_authenticated()
        future = self._start_listener(connection)
        if future is None:
            return False
        try:
            oauth = future.result(timeout=self.timeout)
        except (FutureTimeoutError, CancelledError):
            return self._fail()
        finally:
            self._stop_listener()
        return self._succeed(oauth)

    async def start_validation_async(self, connection: ConnectionInformation) -> bool:
        """Same as `start_validation`, yielding to the event loop while waiting.

        Starting the listener binds sockets and opens the browser, so it runs
        on a worker thread as well.
        """
        if not self._prepare(connection):
            return self.is_authenticated()
        try:
            future = await asyncio.to_thread(self._start_listener, connection)
            if future is None:
                return False
            try:
                oauth = await asyncio.wait_for(asyncio.wrap_future(future), timeout=self.timeout)
            except asyncio.TimeoutError:
                return self._fail()
        finally:
            # also runs when the host cancels us; release the port either way
            await asyncio.to_thread(self._stop_listener)
        return self._succeed(oauth)

    def _prepare(self, connection: ConnectionInformation) -> bool:
        """Check the connection and the stored token; True when a listener is needed."""
        if not connection.client_id:
            raise ValueError("You need to specify a valid Twitch client id to proceed.")

        self._connection = connection
        self._status = self._status_from_storage()
        if self._status is AuthenticationStatus.AUTHENTICATED:
            self.on_authenticated.emit(True)
            return False
        return True

    def _start_listener(self, connection: ConnectionInformation) -> "Optional[Future[OAuth]]":
        listener = self._listener_factory()
        try:
            future = listener.start(connection)
        except OSError as exc:
            logger.error("Could not start the authentication listener: %s", exc)
            listener.stop()
            self._status = AuthenticationStatus.UNKNOWN
            self.on_authenticated.emit(False)
            return None

        self._listener = listener
        self._status = AuthenticationStatus.WAITING
        return future

    def _succeed(self, oauth: OAuth) -> bool:
        self._store.set_token(oauth)
        self._status = AuthenticationStatus.AUTHENTICATED
        self.on_authenticated.emit(True)
        return True

    def _fail(self) -> bool:
        logger.error("Authentication attempt timed out!")
        self._status = AuthenticationStatus.UNKNOWN
        self.on_authenticated.emit(False)
        return False

    def _stop_listener(self) -> None:
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.stop()
        if self._status is AuthenticationStatus.WAITING:
            self._status = AuthenticationStatus.UNKNOWN

    def _status_from_storage(self) -> AuthenticationStatus:
        if not self._store.has_token():
            logger.warning(
                "Trying to get a Twitch access token from local storage, but there is none stored."
            )
            return AuthenticationStatus.UNKNOWN
        if not self._store.get_token():
            logger.warning("No valid access token found in local storage.")
            return AuthenticationStatus.UNKNOWN
        return AuthenticationStatus.AUTHENTICATED
