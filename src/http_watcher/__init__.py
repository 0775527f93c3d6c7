"""Serve a directory and reload connected browsers when its files change."""

__version__ = "0.1.0"
