"""
pytest configuration for apiadapter tests.

Adds src directory to Python path for imports and provides a scripted
in-process HTTP server for adapter tests.
"""

import asyncio
import sys
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from multidict import CIMultiDict

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from apiadapter.config import build_adapter_config  # noqa: E402
from apiadapter.http.client import SessionClientFactory  # noqa: E402
from apiadapter.logging.context import clear_log_context  # noqa: E402


@dataclass
class ScriptedResponse:
    """One canned reply. ``delay`` holds the reply until it elapses or the server is released."""

    status: int = 200
    body: str | bytes = ""
    headers: list[tuple[str, str]] = field(default_factory=list)
    delay: float = 0.0


@dataclass
class RecordedRequest:
    method: str
    path_qs: str
    headers: list[tuple[str, str]]
    body: bytes

    def header_values(self, name: str) -> list[str]:
        return [v for k, v in self.headers if k.lower() == name.lower()]


class ScriptedServer:
    """
    aiohttp server that replays queued responses and records every request.

    When the queue is empty it answers 200 with an empty body.
    """

    def __init__(self):
        self.requests: list[RecordedRequest] = []
        self.responses: deque[ScriptedResponse] = deque()
        self.release = asyncio.Event()
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle)
        self._server = TestServer(app)

    async def start(self) -> None:
        await self._server.start_server()

    async def close(self) -> None:
        self.release.set()
        await self._server.close()

    @property
    def base_url(self) -> str:
        return str(self._server.make_url("/"))

    def enqueue(self, *responses: ScriptedResponse) -> None:
        self.responses.extend(responses)

    async def _handle(self, request: web.Request) -> web.Response:
        body = await request.read()
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path_qs=request.path_qs,
                headers=list(request.headers.items()),
                body=body,
            )
        )
        scripted = self.responses.popleft() if self.responses else ScriptedResponse()

        if scripted.delay:
            try:
                await asyncio.wait_for(self.release.wait(), scripted.delay)
            except asyncio.TimeoutError:
                pass

        headers = CIMultiDict(scripted.headers)
        headers.setdefault("Content-Type", "application/json; charset=utf-8")
        payload = scripted.body.encode("utf-8") if isinstance(scripted.body, str) else scripted.body
        return web.Response(status=scripted.status, body=payload, headers=headers)


@pytest.fixture(autouse=True)
def clear_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
async def scripted_server():
    server = ScriptedServer()
    await server.start()
    yield server
    await server.close()


@pytest.fixture
async def client_factory():
    factory = SessionClientFactory(max_connections=10, max_connections_per_host=10)
    yield factory
    await factory.close()


@pytest.fixture
def adapter_config(scripted_server):
    return build_adapter_config(scripted_server.base_url, name="test-service")
