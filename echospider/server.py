"""HTTP server with a crawl API and a static frontend page."""

from __future__ import annotations

import json
from dataclasses import dataclass
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import urlsplit

from .crawler import Crawler

CRAWL_TIME_LIMIT = 5 * 60
DEFAULT_PORT = 8080

_FIELDS = {
    "url": ("url", str),
    "maxdepth": ("max_depth", int),
    "maxworkers": ("max_workers", int),
    "timeout": ("timeout", int),
    "respectrobots": ("respect_robots", bool),
}


@dataclass
class CrawlRequest:
    """Parameters of a crawl requested through the API."""

    url: str = ""
    max_depth: int = 0
    max_workers: int = 0
    timeout: int = 0
    respect_robots: bool = False

    @classmethod
    def from_json(cls, data) -> CrawlRequest:
        """Build a request from JSON text or a decoded object.

        Keys match case-insensitively and unknown keys are ignored. Depth,
        workers and timeout outside their allowed ranges fall back to the
        defaults. Malformed input raises ``ValueError``.
        """
        if isinstance(data, (str, bytes, bytearray)):
            try:
                data = json.loads(data)
            except ValueError as exc:
                raise ValueError(f"invalid JSON: {exc}") from exc

        request = cls()
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("crawl request must be a JSON object")

        for key, value in data.items():
            spec = _FIELDS.get(key.lower())
            if spec is None or value is None:
                continue
            attr, kind = spec
            if kind is int and (isinstance(value, bool) or not isinstance(value, int)):
                raise ValueError(f"{key}: expected an integer, got {value!r}")
            if kind is not int and not isinstance(value, kind):
                raise ValueError(f"{key}: expected {kind.__name__}, got {value!r}")
            setattr(request, attr, value)

        if not 0 < request.max_depth <= 10:
            request.max_depth = 2
        if not 0 < request.max_workers <= 100:
            request.max_workers = 10
        if not 0 < request.timeout <= 60:
            request.timeout = 10
        return request


def _make_handler(web_dir: Path) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        def log_message(self, format, *args):  # noqa: A002
            pass

        def _send(self, status: int, body: bytes, content_type: str, extra=None) -> None:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            for name, value in (extra or {}).items():
                self.send_header(name, value)
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(body)

        def _error(self, status: int, message: str) -> None:
            self._send(
                status,
                (message + "\n").encode("utf-8"),
                "text/plain; charset=utf-8",
                {"X-Content-Type-Options": "nosniff"},
            )

        def _dispatch(self) -> None:
            path = urlsplit(self.path).path
            if path == "/api/crawl":
                self._crawl()
            elif path == "/":
                self._index()
            else:
                self._error(HTTPStatus.NOT_FOUND, "404 page not found")

        def _index(self) -> None:
            index = web_dir / "index.html"
            if not index.is_file():
                self._error(HTTPStatus.NOT_FOUND, "Frontend not found")
                return
            self._send(HTTPStatus.OK, index.read_bytes(), "text/html; charset=utf-8")

        def _read_body(self) -> bytes:
            length = int(self.headers.get("Content-Length") or 0)
            return self.rfile.read(length) if length > 0 else b""

        def _crawl(self) -> None:
            if self.command != "POST":
                self._error(HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed")
                return
            try:
                request = CrawlRequest.from_json(self._read_body())
            except ValueError:
                self._error(HTTPStatus.BAD_REQUEST, "Invalid JSON")
                return
            if not request.url:
                self._error(HTTPStatus.BAD_REQUEST, "URL is required")
                return

            crawler = Crawler(
                request.max_depth,
                request.max_workers,
                float(request.timeout),
                request.respect_robots,
            )
            results = [
                result.to_dict()
                for result in crawler.crawl(request.url, time_limit=CRAWL_TIME_LIMIT)
            ]
            body = json.dumps(results or None).encode("utf-8") + b"\n"
            self._send(HTTPStatus.OK, body, "application/json")

        do_GET = _dispatch
        do_POST = _dispatch
        do_PUT = _dispatch
        do_DELETE = _dispatch
        do_PATCH = _dispatch
        do_HEAD = _dispatch

    return Handler


def create_server(host="", port=DEFAULT_PORT, web_dir="web") -> ThreadingHTTPServer:
    """A bound, not yet serving, server for the frontend and the crawl API."""
    return ThreadingHTTPServer((host, port), _make_handler(Path(web_dir)))


def serve_frontend(host="", port=DEFAULT_PORT) -> None:
    """Serve the frontend from ``web/`` and the crawl API until interrupted."""
    print(f"Server starting on http://localhost:{port}")
    try:
        server = create_server(host, port, "web")
    except OSError as exc:
        print(f"Server error: {exc}")
        return
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass