"""Unit tests for the HTTP application."""

import time
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from http_watcher.config import WatcherConfig
from http_watcher.monitoring import ReloadCoordinator
from http_watcher.server.app import create_app


def wait_for_clients(registry, count: int, timeout: float = 2.0) -> None:
    """Block until the registry holds ``count`` clients."""
    deadline = time.monotonic() + timeout
    while len(registry) != count:
        if time.monotonic() > deadline:
            raise AssertionError(f"expected {count} clients, have {len(registry)}")
        time.sleep(0.01)


@pytest.fixture
def site(tmp_path):
    """Create a watched root with a page and a stylesheet."""
    (tmp_path / "css").mkdir()
    (tmp_path / "css" / "site.css").write_text("body { color: red; }")
    (tmp_path / "about").mkdir()
    (tmp_path / "about" / "index.html").write_text("<h1>About</h1>")
    return tmp_path


@pytest.fixture
def config(site):
    return WatcherConfig(root_dir=site, delay=2.5)


@pytest.fixture
def mock_observer():
    """Create a mock watchdog observer so no threads are started."""
    observer = Mock()
    observer.is_alive.return_value = False
    observer.schedule.side_effect = lambda handler, path, recursive=False: Mock(path=path)
    return observer


@pytest.fixture
def coordinator(config, mock_observer):
    return ReloadCoordinator(config, observer=mock_observer)


@pytest.fixture
def client(config, coordinator):
    """Create a test client without running the lifespan."""
    return TestClient(create_app(config, coordinator))


class TestReloadScript:
    """Test cases for the /js route."""

    def test_script_headers(self, client):
        """Test content type and caching headers."""
        resp = client.get("/js")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/javascript")
        assert resp.headers["cache-control"] == "no-cache"

    def test_script_points_back_at_host(self, client):
        """Test that the script connects to the push channel of the requesting host."""
        resp = client.get("/js", headers={"host": "localhost:8000"})

        assert 'new WebSocket("ws://localhost:8000/ws")' in resp.text
        assert "parseFloat(e.data)" in resp.text


class TestStaticFiles:
    """Test cases for serving the watched tree."""

    def test_landing_page_without_index(self, client):
        """Test that the root without index.html shows the snippet to embed."""
        resp = client.get("/", headers={"host": "localhost:8000"})

        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "&lt;script src=\"http://localhost:8000/js\"&gt;&lt;/script&gt;" in resp.text

    def test_root_index_served(self, client, site):
        """Test that an existing index.html replaces the landing page."""
        (site / "index.html").write_text("<h1>Home</h1>")

        resp = client.get("/")

        assert resp.status_code == 200
        assert resp.text == "<h1>Home</h1>"

    def test_file_served(self, client):
        """Test that files are served from the root with no-cache."""
        resp = client.get("/css/site.css")

        assert resp.status_code == 200
        assert resp.text == "body { color: red; }"
        assert resp.headers["content-type"].startswith("text/css")
        assert resp.headers["cache-control"] == "no-cache"

    def test_directory_index_served(self, client):
        """Test that a directory serves its index.html."""
        resp = client.get("/about/")

        assert resp.status_code == 200
        assert resp.text == "<h1>About</h1>"

    def test_missing_file(self, client):
        """Test that unknown paths are not found."""
        assert client.get("/missing.html").status_code == 404

    def test_path_outside_root(self, client, site):
        """Test that paths escaping the root are not served."""
        (site.parent / "secret.txt").write_text("secret")

        resp = client.get("/%2e%2e/secret.txt")

        assert resp.status_code == 404


class TestReloadChannel:
    """Test cases for the /ws push channel."""

    def test_lifespan_starts_and_stops_coordinator(self, config, coordinator, mock_observer):
        """Test that the coordinator runs for the lifetime of the app."""
        with TestClient(create_app(config, coordinator)):
            assert coordinator.is_running
            mock_observer.start.assert_called_once()

        assert not coordinator.is_running

    def test_client_receives_reload_delay(self, config, coordinator):
        """Test that a connected client receives the delay in milliseconds and is dropped."""
        with TestClient(create_app(config, coordinator)) as client:
            with client.websocket_connect("/ws") as ws:
                wait_for_clients(coordinator.registry, 1)

                delivered = client.portal.call(coordinator.broadcaster.notify)

                assert delivered == 1
                assert ws.receive_text() == "2500.0"
                assert len(coordinator.registry) == 0

    def test_disconnect_unregisters_client(self, config, coordinator):
        """Test that a client closing its connection leaves the registry."""
        with TestClient(create_app(config, coordinator)) as client:
            with client.websocket_connect("/ws"):
                wait_for_clients(coordinator.registry, 1)

            wait_for_clients(coordinator.registry, 0)
