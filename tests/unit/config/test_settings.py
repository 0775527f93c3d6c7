"""Unit tests for watcher configuration."""

from pathlib import Path

import pytest
from http_watcher.config import LogLevel, WatcherConfig
from pydantic import ValidationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep HTTP_WATCHER_* variables and stray .env files out of the tests."""
    for key in ("PORT", "ROOT_DIR", "IGNORES", "PRIVATE", "DELAY", "WINDOW_SECONDS", "LOG_LEVEL"):
        monkeypatch.delenv(f"HTTP_WATCHER_{key}", raising=False)
    monkeypatch.chdir(tmp_path)


class TestWatcherConfig:
    """Test cases for WatcherConfig."""

    def test_defaults(self, tmp_path):
        """Test default configuration values."""
        config = WatcherConfig()

        assert config.port == 8000
        assert config.root_dir == Path(tmp_path).resolve()
        assert config.ignores == ""
        assert config.private is False
        assert config.delay == 0.0
        assert config.window_seconds == 0.1
        assert config.log_level is LogLevel.INFO

    def test_root_dir_is_resolved(self, tmp_path):
        """Test that a relative root directory becomes absolute."""
        (tmp_path / "site").mkdir()

        config = WatcherConfig(root_dir="site/../site")

        assert config.root_dir == (tmp_path / "site").resolve()
        assert config.root_dir.is_absolute()

    def test_bind_host(self):
        """Test loopback vs all-interface binding."""
        assert WatcherConfig().bind_host == "0.0.0.0"
        assert WatcherConfig(private=True).bind_host == "127.0.0.1"

    def test_ignore_patterns_skip_empty_entries(self):
        """Test splitting of the comma-separated ignore list."""
        config = WatcherConfig(ignores=r"\.log$,,node_modules,")

        assert config.get_ignore_patterns() == [r"\.log$", "node_modules"]

    def test_no_ignore_patterns(self):
        """Test that an empty ignore list yields no patterns."""
        assert WatcherConfig().get_ignore_patterns() == []

    def test_environment_variables(self, monkeypatch):
        """Test that HTTP_WATCHER_* variables are picked up."""
        monkeypatch.setenv("HTTP_WATCHER_PORT", "9090")
        monkeypatch.setenv("HTTP_WATCHER_DELAY", "2.5")
        monkeypatch.setenv("HTTP_WATCHER_PRIVATE", "true")

        config = WatcherConfig()

        assert config.port == 9090
        assert config.delay == 2.5
        assert config.private is True

    def test_explicit_values_override_environment(self, monkeypatch):
        """Test that constructor values win over the environment."""
        monkeypatch.setenv("HTTP_WATCHER_PORT", "9090")

        assert WatcherConfig(port=8001).port == 8001

    @pytest.mark.parametrize("port", [0, 65536])
    def test_invalid_port(self, port):
        """Test port range validation."""
        with pytest.raises(ValidationError):
            WatcherConfig(port=port)

    def test_negative_delay_rejected(self):
        """Test delay validation."""
        with pytest.raises(ValidationError):
            WatcherConfig(delay=-1)

    def test_log_config(self):
        """Test the logging dictConfig layout."""
        config = WatcherConfig(log_level=LogLevel.DEBUG)

        log_config = config.get_log_config()

        assert log_config["handlers"]["default"]["class"] == "logging.StreamHandler"
        assert log_config["handlers"]["default"]["level"] == "DEBUG"
        assert log_config["loggers"]["http_watcher"]["level"] == "DEBUG"
        assert "uvicorn" in log_config["loggers"]

    def test_log_config_with_file(self, tmp_path):
        """Test that a log file switches to a file handler."""
        log_file = tmp_path / "watcher.log"
        config = WatcherConfig(log_file=log_file)

        handler = config.get_log_config()["handlers"]["default"]

        assert handler["class"] == "logging.FileHandler"
        assert handler["filename"] == str(log_file)
