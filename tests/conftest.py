"""Shared fixtures: an in-process fake of the MyWaifuList API."""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Optional

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from clients.mywaifulist import MyWaifuListClient

API_PREFIX = "/api/v1"
TEST_API_KEY = "test-api-key"


@dataclass
class RecordedRequest:
    """A request as the fake API received it."""

    method: str
    path: str
    raw_path: str
    query: dict[str, str]
    headers: Any  # case-insensitive multidict
    body: bytes


@dataclass
class CannedResponse:
    status: int = 200
    body: bytes = b"{}"
    delay: float = 0.0


@dataclass
class FakeMyWaifuList:
    """Serves canned responses and records every request it receives."""

    requests: list[RecordedRequest] = field(default_factory=list)
    routes: dict[tuple[str, str], CannedResponse] = field(default_factory=dict)
    released: asyncio.Event = field(default_factory=asyncio.Event)
    base_url: str = ""

    def respond(
        self,
        method: str,
        path: str,
        *,
        status: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        raw: Optional[bytes] = None,
        delay: float = 0.0
    ) -> None:
        if raw is None:
            if text is None:
                text = json.dumps({} if json_body is None else json_body)
            raw = text.encode("utf-8")
        self.routes[(method, path)] = CannedResponse(status=status, body=raw, delay=delay)

    async def handle(self, request: web.Request) -> web.Response:
        path = request.path[len(API_PREFIX):]
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=path,
                raw_path=request.rel_url.raw_path,
                query=dict(request.query),
                headers=request.headers.copy(),
                body=await request.read(),
            )
        )

        canned = self.routes.get((request.method, path))
        if canned is None:
            return web.json_response({"message": "Not Found"}, status=404)

        if canned.delay:
            try:
                await asyncio.wait_for(self.released.wait(), timeout=canned.delay)
            except asyncio.TimeoutError:
                pass

        return web.Response(
            status=canned.status,
            body=canned.body,
            content_type="application/json",
        )


@pytest.fixture
async def fake_api():
    """Start the fake API on a random local port."""
    fake = FakeMyWaifuList()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", fake.handle)

    server = TestServer(app)
    await server.start_server()
    fake.base_url = str(server.make_url(API_PREFIX))
    try:
        yield fake
    finally:
        # Let delayed handlers finish so shutdown does not wait on them
        fake.released.set()
        await server.close()


@pytest.fixture
async def client(fake_api):
    """MyWaifuList client pointed at the fake API."""
    async with MyWaifuListClient(
        TEST_API_KEY,
        base_url=fake_api.base_url,
        timeout_ms=2000,
    ) as api:
        yield api
