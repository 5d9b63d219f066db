from __future__ import annotations

import socket
import threading

import pytest

from foodrecipes.services.executors import AppExecutors
from foodrecipes.services.recipe_api_client import RecipeApiClient
from recipe_fakes import API_KEY, BASE_URL, FakeRecipeService


@pytest.fixture
def executors():
    ex = AppExecutors(max_workers=3, thread_name_prefix="test_network")
    yield ex
    ex.shutdown(wait=True)


@pytest.fixture
def fake_service() -> FakeRecipeService:
    return FakeRecipeService()


@pytest.fixture
def make_client(fake_service, executors):
    """Factory for a RecipeApiClient over the fake service with a chosen deadline."""

    def _make(timeout_seconds: float = 2.0) -> RecipeApiClient:
        return RecipeApiClient(
            fake_service, executors, api_key=API_KEY, timeout_seconds=timeout_seconds
        )

    return _make


# Provide a respx fixture to make external HTTP mocking straightforward. Tests
# that need to mock HTTP should depend on the `respx_mock` fixture.
@pytest.fixture
def respx_mock():
    import respx

    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture
def silent_server(monkeypatch):
    """Local TCP server that accepts connections and never sends a byte.

    Yields ``(base_url, accepted)`` where ``accepted`` is set once a client has
    connected.
    """
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)

    server = socket.create_server(("127.0.0.1", 0))
    server.settimeout(0.05)
    accepted = threading.Event()
    stop = threading.Event()
    conns: list[socket.socket] = []

    def _serve() -> None:
        while not stop.is_set():
            try:
                conn, _ = server.accept()
            except OSError:
                continue
            conns.append(conn)
            accepted.set()

    thread = threading.Thread(target=_serve, daemon=True)
    thread.start()
    host, port = server.getsockname()
    try:
        yield f"http://{host}:{port}", accepted
    finally:
        stop.set()
        thread.join(1)
        for conn in conns:
            conn.close()
        server.close()
