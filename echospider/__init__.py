"""Concurrent same-host web crawler with robots.txt support, a CLI and a JSON API server."""

__version__ = "1.0.0"