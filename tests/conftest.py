import json
import threading
import time

import httpx
import pytest

from stat_batcher.batcher import Batcher
from stat_batcher.sender import HTTPSender

API_URL = "http://ingest.test/ez"


class FakeIngestAPI:
    """Records every bulk request posted to it and answers with *status*."""

    def __init__(self, status: int = 200):
        self.status = status
        self.bodies: list[dict] = []
        self.headers: list = []
        self._lock = threading.Lock()
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.bodies.append(json.loads(request.content))
            self.headers.append(request.headers)
        return httpx.Response(self.status, text="ok")

    @property
    def request_count(self) -> int:
        with self._lock:
            return len(self.bodies)

    def wait_for_requests(self, expected: int, timeout: float = 3.0) -> bool:
        """Poll until *expected* requests have arrived or *timeout* elapses."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.request_count >= expected:
                return True
            time.sleep(0.02)
        return self.request_count >= expected


@pytest.fixture
def ingest_api():
    return FakeIngestAPI()


@pytest.fixture
def sender(ingest_api):
    s = HTTPSender(api_url=API_URL, timeout=1.0, transport=ingest_api.transport)
    yield s
    s.close()


@pytest.fixture
def batcher(ingest_api):
    """A started Batcher whose timer never fires during a test; flush explicitly."""
    s = HTTPSender(api_url=API_URL, timeout=1.0, transport=ingest_api.transport)
    b = Batcher(ezkey="test-key", flush_interval=60.0, sender=s)
    b.start()
    yield b
    b.close()
