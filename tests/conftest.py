"""Shared fixtures.

HTTP never leaves the process: ``FakeApi`` is mounted into the client
through ``httpx.MockTransport`` and records every request it sees.

Run with:
    pytest tests/
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

from twentyi_mcp.context import ServerContext
from twentyi_mcp.credentials import Credentials

ACCOUNT_ID = "0f8b7d7c-d878-4356-9b00-e6210a26fff1"


class FakeApi:
    """Canned 20i responses keyed by (method, path)."""

    def __init__(self) -> None:
        self._routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: List[httpx.Request] = []
        self.delay = 0.0

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json_body: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if content is not None:
                return httpx.Response(status, content=content, headers=headers)
            return httpx.Response(status, json=json_body, headers=headers)

        self._routes[(method, path)] = respond

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._routes[(method, path)] = handler

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.calls if r.method == method and r.url.path == path)

    def body(self, index: int = -1) -> Any:
        return json.loads(self.calls[index].content)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(599, json={"message": f"no fake route for {request.method} {request.url.path}"})
        return route(request)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(api_key="generalKey123", oauth_key="oauthKey456", combined_key="combined+Key789")


@pytest.fixture
def api() -> FakeApi:
    fake = FakeApi()
    fake.add("GET", "/reseller", json_body={"id": ACCOUNT_ID, "name": "Test Reseller"})
    return fake


@pytest_asyncio.fixture
async def ctx(credentials, api):
    context = ServerContext.create(credentials, transport=httpx.MockTransport(api))
    yield context
    await context.aclose()
