"""Shared fixtures: async backend and in-process HTTP stubs."""

from collections.abc import AsyncIterator, Awaitable, Callable

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def serve() -> AsyncIterator[Callable[[web.Application], Awaitable[TestServer]]]:
    """Starts aiohttp applications on local ports; all are closed after the test."""

    servers: list[TestServer] = []

    async def _serve(app: web.Application) -> TestServer:
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return server

    yield _serve

    for server in servers:
        await server.close()
