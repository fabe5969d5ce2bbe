"""Shared fixtures for registry, driver and CLI tests."""

import asyncio
import socket
import threading
import time
from collections.abc import Callable, Generator
from contextlib import closing

import httpx
import pytest
from aiohttp import web

from corpweb.common.page_element import LxmlPageElement, parse_html
from corpweb.common.request_manager import SyncRequestManager
from tests.mock_server import (
    CORPORATIONS,
    SUMMARY_PATH,
    create_app,
    generate_corporation_html,
    registry_handler,
)

PAGE_URL = "http://registry.test/CorpSummary.aspx?FEIN=000000007"


@pytest.fixture
def make_page() -> Callable[[str], LxmlPageElement]:
    """Build a parsed page from literal HTML.

    Returns:
        A function taking an HTML string and returning an LxmlPageElement.
    """

    def build(html: str) -> LxmlPageElement:
        return parse_html(html.encode("utf-8"), PAGE_URL)

    return build


@pytest.fixture
def corporation_page() -> LxmlPageElement:
    """The parsed summary page for corporation 7."""
    html = generate_corporation_html(CORPORATIONS[7])
    return parse_html(html.encode("utf-8"), PAGE_URL)


@pytest.fixture
def mock_request_manager() -> Generator[SyncRequestManager, None, None]:
    """A SyncRequestManager answering from the mock registry in-process."""
    manager = SyncRequestManager(
        transport=httpx.MockTransport(registry_handler())
    )
    yield manager
    manager.close()


# =============================================================================
# aiohttp test server fixtures
# =============================================================================


def find_free_port() -> int:
    """Find a free port on localhost.

    Returns:
        An available port number.
    """
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


class AioHttpTestServer:
    """Wrapper to run aiohttp server in a background thread."""

    def __init__(self, app: web.Application, port: int) -> None:
        self.app = app
        self.port = port
        self.host = "127.0.0.1"
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runner: web.AppRunner | None = None
        self._thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        """Get the base URL of the server."""
        return f"http://{self.host}:{self.port}"

    def start(self) -> None:
        """Start the server in a background thread."""
        self._thread = threading.Thread(target=self._run_server, daemon=True)
        self._thread.start()
        # Give the server time to start
        time.sleep(0.1)

    def _run_server(self) -> None:
        """Run the server in an asyncio event loop."""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        async def start() -> None:
            self._runner = web.AppRunner(self.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.host, self.port)
            await site.start()

        self._loop.run_until_complete(start())
        self._loop.run_forever()

    def stop(self) -> None:
        """Stop the server and clean up resources."""
        if self._loop and self._runner:
            runner = self._runner
            future = asyncio.run_coroutine_threadsafe(
                runner.cleanup(), self._loop
            )
            try:
                future.result(timeout=2.0)
            except Exception:
                pass  # Best effort cleanup

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread:
            self._thread.join(timeout=2.0)


@pytest.fixture
def registry_server() -> Generator[AioHttpTestServer, None, None]:
    """Create and start an aiohttp test server running the mock registry.

    Yields:
        AioHttpTestServer instance with the registry app running.
    """
    app = create_app()
    port = find_free_port()
    server = AioHttpTestServer(app, port)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def base_url(registry_server: AioHttpTestServer) -> str:
    """Summary page URL on the test server, without the FEIN parameter."""
    return f"{registry_server.url}{SUMMARY_PATH}"
