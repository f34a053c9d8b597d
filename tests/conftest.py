import json
from typing import AsyncGenerator, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from batch_gateway.api.deps import get_batch_executor
from batch_gateway.config import settings
from batch_gateway.core.batch import BatchExecutor
from batch_gateway.core.tracing import propagate_trace_headers
from batch_gateway.main import app

BASE_PATH = "http://backend.test"

Handler = Callable[[httpx.Request], httpx.Response]


def echo(request: httpx.Request) -> httpx.Response:
    """Answer with a description of the received request."""
    content = request.content
    return httpx.Response(
        200,
        json={
            "method": request.method,
            "path": request.url.path,
            "headers": [[name, value] for name, value in request.headers.multi_items()],
            "body": json.loads(content) if content else None,
        },
    )


class StubBackend:
    """Backing service stub recording every request it receives.

    ``/status/<code>`` answers with that status; ``routes`` overrides
    individual paths; everything else is echoed back.
    """

    def __init__(self, routes: Optional[Dict[str, Handler]] = None):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Handler] = routes or {}

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        path = request.url.path
        if path in self.routes:
            return self.routes[path](request)
        if path.startswith("/status/"):
            code = int(path.rsplit("/", 1)[-1])
            return httpx.Response(code, json={"status": code})
        return echo(request)

    @property
    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class RecordingLogger:
    """Logger capturing structured log calls."""

    def __init__(self):
        self.records = []

    def _log(self, level, event, **kw):
        self.records.append((level, event, kw))

    def info(self, event, **kw):
        self._log("info", event, **kw)

    def warning(self, event, **kw):
        self._log("warning", event, **kw)

    def error(self, event, **kw):
        self._log("error", event, **kw)

    def events(self, level: str) -> List[str]:
        return [event for lvl, event, _ in self.records if lvl == level]


@pytest.fixture
def backend() -> StubBackend:
    """Create an empty stub backend."""
    return StubBackend()


@pytest.fixture
def test_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def executor(backend: StubBackend, test_logger: RecordingLogger) -> BatchExecutor:
    """Create an executor talking to the stub backend."""
    return BatchExecutor(BASE_PATH, test_logger, transport=backend.transport)


@pytest_asyncio.fixture(scope="function")
async def client(backend: StubBackend) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client whose batches are sent to the stub backend."""

    def override_get_batch_executor():
        executor = BatchExecutor(
            BASE_PATH,
            transport=backend.transport,
            max_operations=settings.BATCH_MAX_OPERATIONS,
        )
        return executor.with_trace(propagate_trace_headers)

    app.dependency_overrides[get_batch_executor] = override_get_batch_executor

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
