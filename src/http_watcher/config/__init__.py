"""Configuration management and settings."""

from http_watcher.config.settings import LogLevel, WatcherConfig

__all__ = ["WatcherConfig", "LogLevel"]
