from concurrent.futures import Future

import pytest

from twitchwebrequest.local_storage import open_token_store
from twitchwebrequest.models import ConnectionInformation, OAuth


class FakeListener:
    """Stands in for LoopbackListener without opening sockets or a browser."""

    def __init__(self, token: OAuth | None = None, fail: bool = False):
        self.token = token
        self.fail = fail
        self.started = 0
        self.stopped = 0
        self.future: Future = Future()

    def start(self, connection):
        self.started += 1
        if self.fail:
            raise OSError("address already in use")
        if self.token is not None:
            self.future.set_result(self.token)
        return self.future

    def stop(self):
        self.stopped += 1
        self.future.cancel()


@pytest.fixture
def token_store(tmp_path):
    return open_token_store(tmp_path / "settings.db", app_name="TestApp")


@pytest.fixture
def connection():
    return ConnectionInformation.create("client-123", ["channel:manage:redemptions"])
