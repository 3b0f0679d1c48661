"""Global pytest fixtures for TESSERA."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

import httpx
import pytest

from tessera.adapters.id_generators import SimpleIdGenerator
from tessera.adapters.surface.memory import MemorySurface
from tessera.bootstrap import bootstrap
from tessera.config import Settings
from tessera.service_layer.engine import Engine
from tessera.service_layer.loader import HttpTransport, ResourceLoader

# pylint: disable=redefined-outer-name

ENGINE_VERSION = "1.0.0"


@dataclass
class Route:
    """A canned response of the fake web."""

    body: Any = ""
    status: int = 200
    delay: float = 0.0


class FakeWeb:
    """Routes requests of an `httpx.MockTransport` to canned responses.

    Routes are keyed by URL without query string. Bodies may be text, bytes,
    JSON-serializable data or a callable receiving the request.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, body: Any = "", *, status: int = 200, delay: float = 0.0) -> None:
        """Serve `body` for GETs and other requests to `url`."""
        self.routes[url] = Route(body, status, delay)

    def requested(self, url: str) -> list[httpx.Request]:
        """Return the requests made to `url` (query string ignored)."""
        return [req for req in self.requests if str(req.url).split("?")[0] == url]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url).split("?")[0])
        if route is None:
            return httpx.Response(404, text="not found")
        if route.delay:
            await asyncio.sleep(route.delay)
        body = route.body(request) if callable(route.body) else route.body
        if isinstance(body, bytes):
            return httpx.Response(route.status, content=body)
        if isinstance(body, str):
            return httpx.Response(route.status, text=body)
        return httpx.Response(route.status, json=body)


@pytest.fixture
def web() -> FakeWeb:
    """A fresh fake web."""
    return FakeWeb()


@pytest.fixture
async def http_client(web: FakeWeb) -> AsyncIterator[httpx.AsyncClient]:
    """An HTTP client answering from the fake web."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(web.handler)) as client:
        yield client


@pytest.fixture
def surface() -> MemorySurface:
    """A fresh in-memory rendering surface."""
    return MemorySurface()


@pytest.fixture
def make_loader(
    surface: MemorySurface, http_client: httpx.AsyncClient
) -> Callable[..., ResourceLoader]:
    """Factory for loaders over the fake web, with an optional timeout."""

    def _make(timeout: float = 0.0, files: dict[str, Any] | None = None) -> ResourceLoader:
        return ResourceLoader(
            surface,
            HttpTransport(http_client),
            files if files is not None else {},
            SimpleIdGenerator(length=3),
            timeout=timeout,
        )

    return _make


@pytest.fixture
def loader(make_loader: Callable[..., ResourceLoader]) -> ResourceLoader:
    """A loader over the fake web without timeout."""
    return make_loader()


@pytest.fixture
def engine(surface: MemorySurface, http_client: httpx.AsyncClient) -> Engine:
    """An engine over the fake web and an in-memory surface."""
    return bootstrap(
        ENGINE_VERSION,
        surface=surface,
        http_client=http_client,
        settings=Settings(engine_version=ENGINE_VERSION),
        id_generator=SimpleIdGenerator(length=4),
    )
