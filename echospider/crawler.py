"""Concurrent, depth-limited crawling of a single site."""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import urlsplit

import requests
from bs4 import BeautifulSoup

from .extract import (
    Image,
    Link,
    extract_description,
    extract_images,
    extract_keywords,
    extract_links,
    extract_title,
)
from .robots import RobotsChecker

USER_AGENT = "EchoSpider/1.0"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_DEPTH = 2
DEFAULT_MAX_WORKERS = 10
MIN_WORKERS = 1
MAX_WORKERS = 100
RATE_LIMIT_DELAY = 0.05
MAX_RETRIES = 3

_REQUEST_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Cache-Control": "no-cache",
}

_RETRYABLE = (
    "timeout",
    "connection reset",
    "connection refused",
    "temporary failure",
    "server closed",
    "broken pipe",
)

_ZERO_TIME = "0001-01-01T00:00:00Z"
_POLL = 0.05


class CrawlError(Exception):
    """A page could not be crawled."""


@dataclass
class CrawlStats:
    """Thread-safe counters for one crawler."""

    urls_crawled: int = 0
    urls_skipped: int = 0
    urls_successful: int = 0
    urls_failed: int = 0
    bytes_transferred: int = 0
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment_total(self) -> None:
        with self._lock:
            self.urls_crawled += 1

    def increment_skipped(self) -> None:
        with self._lock:
            self.urls_skipped += 1

    def increment_successful(self) -> None:
        with self._lock:
            self.urls_successful += 1

    def increment_failed(self) -> None:
        with self._lock:
            self.urls_failed += 1

    def add_bytes(self, count: int) -> None:
        with self._lock:
            self.bytes_transferred += count

    def snapshot(self) -> CrawlStats:
        """An independent copy of the current counters."""
        with self._lock:
            return CrawlStats(
                urls_crawled=self.urls_crawled,
                urls_skipped=self.urls_skipped,
                urls_successful=self.urls_successful,
                urls_failed=self.urls_failed,
                bytes_transferred=self.bytes_transferred,
                start_time=self.start_time,
            )


@dataclass
class CrawlResult:
    """What was learned about one URL, or why it failed."""

    url: str
    title: str = ""
    description: str = ""
    keywords: list[str] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    images: list[Image] = field(default_factory=list)
    depth: int = 0
    error: Exception | None = None
    status_code: int = 0
    content_type: str = ""
    response_time: float = 0.0
    timestamp: datetime | None = None

    def to_dict(self) -> dict:
        """JSON-ready mapping; empty optional fields are left out."""
        data: dict = {"url": self.url}
        if self.title:
            data["title"] = self.title
        if self.description:
            data["description"] = self.description
        if self.keywords:
            data["keywords"] = list(self.keywords)
        if self.links:
            data["links"] = [_omit_empty({"url": l.url, "text": l.text}) for l in self.links]
        if self.images:
            data["images"] = [_omit_empty({"url": i.url, "alt": i.alt}) for i in self.images]
        data["depth"] = self.depth
        if self.error is not None:
            data["error"] = str(self.error)
        data["statusCode"] = self.status_code
        if self.content_type:
            data["contentType"] = self.content_type
        nanoseconds = round(self.response_time * 1e9)
        if nanoseconds:
            data["responseTime"] = nanoseconds
        data["timestamp"] = _format_time(self.timestamp)
        return data


def _omit_empty(item: dict) -> dict:
    return {key: value for key, value in item.items() if key == "url" or value}


def _format_time(moment: datetime | None) -> str:
    if moment is None:
        return _ZERO_TIME
    text = moment.astimezone(timezone.utc).isoformat()
    return text.replace("+00:00", "Z")


def is_retryable_error(error) -> bool:
    """Whether an error looks transient enough to try again."""
    if error is None:
        return False
    text = str(error).lower()
    return any(marker in text for marker in _RETRYABLE)


def _host(url: str) -> str:
    return urlsplit(url).netloc.rpartition("@")[2]


class Crawler:
    """Fetches pages of one site breadth-first with a pool of worker threads."""

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timeout: float = DEFAULT_TIMEOUT,
        respect_robots: bool = False,
        *,
        session: requests.Session | None = None,
        rate_limit: float = RATE_LIMIT_DELAY,
        max_retries: int = MAX_RETRIES,
        retry_backoff: float = 1.0,
        user_agent: str = USER_AGENT,
    ):
        self.max_depth = max_depth
        self.max_workers = min(max(max_workers, MIN_WORKERS), MAX_WORKERS)
        self.timeout = timeout if timeout >= 1 else DEFAULT_TIMEOUT
        self.respect_robots = respect_robots
        self.rate_limit = rate_limit
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.user_agent = user_agent
        self.base_url: str | None = None
        self.stats = CrawlStats()
        self._session = session if session is not None else requests.Session()
        self.robots_checker = RobotsChecker(session=self._session)
        self._visited: set[str] = set()
        self._visited_lock = threading.Lock()

    def is_visited(self, url: str) -> bool:
        with self._visited_lock:
            return url in self._visited

    def mark_visited(self, url: str) -> bool:
        """Record ``url``; true only the first time it is seen."""
        with self._visited_lock:
            if url in self._visited:
                return False
            self._visited.add(url)
            return True

    def is_internal_link(self, link: str) -> bool:
        """Whether ``link`` is on the same host as the crawl's start URL."""
        if self.base_url is None:
            return True
        try:
            return _host(link) == _host(self.base_url)
        except ValueError:
            return False

    def crawl_url(self, raw_url: str) -> CrawlResult:
        """Fetch and analyse one page, retrying transient failures."""
        started = time.monotonic()
        if self.rate_limit > 0:
            time.sleep(self.rate_limit)

        if self.respect_robots and not self.robots_checker.can_crawl(raw_url, self.user_agent):
            self.stats.increment_skipped()
            raise CrawlError("robots.txt disallows crawling")

        last_error: Exception | None = None
        for attempt in range(self.max_retries + 1):
            if attempt and self.retry_backoff > 0:
                time.sleep(attempt * self.retry_backoff)
            try:
                result, size = self._attempt(raw_url, started)
            except CrawlError as exc:
                last_error = exc
                if not is_retryable_error(exc):
                    break
                continue
            self.stats.increment_successful()
            if size > 0:
                self.stats.add_bytes(size)
            return result

        self.stats.increment_failed()
        raise CrawlError(
            f"failed after {self.max_retries + 1} attempts: {last_error}"
        ) from last_error

    def _attempt(self, raw_url: str, started: float) -> tuple[CrawlResult, int]:
        headers = {"User-Agent": self.user_agent, **_REQUEST_HEADERS}
        try:
            response = self._session.get(raw_url, headers=headers, timeout=self.timeout)
        except requests.Timeout as exc:
            raise CrawlError(f"making request: timeout: {exc}") from exc
        except (requests.RequestException, ValueError) as exc:
            raise CrawlError(f"making request: {exc}") from exc

        with response:
            code = response.status_code
            if code < 200 or code >= 400:
                raise CrawlError(f"HTTP {code}: {code} {response.reason or ''}".rstrip())

            content_type = response.headers.get("Content-Type", "")
            if "text/html" not in content_type.lower():
                raise CrawlError(f"not HTML content: {content_type}")

            try:
                body = response.content
            except requests.RequestException as exc:
                raise CrawlError(f"reading body: {exc}") from exc
            response_time = time.monotonic() - started

        doc = BeautifulSoup(body, "html.parser")
        result = CrawlResult(
            url=raw_url,
            title=extract_title(doc),
            description=extract_description(doc),
            keywords=extract_keywords(doc),
            links=extract_links(doc, raw_url, self.is_internal_link),
            images=extract_images(doc, raw_url),
            status_code=code,
            content_type=content_type,
            response_time=response_time,
            timestamp=datetime.now(timezone.utc),
        )
        return result, len(body)

    def crawl(self, start_url: str, time_limit: float | None = None) -> Iterator[CrawlResult]:
        """Crawl from ``start_url``, yielding results as pages finish.

        Stops when no work is left, when ``time_limit`` seconds have passed,
        or when the generator is closed.
        """
        try:
            urlsplit(start_url)
        except ValueError as exc:
            yield CrawlResult(url=start_url, error=CrawlError(f"parsing start URL: {exc}"))
            return
        self.base_url = start_url

        deadline = None if time_limit is None else time.monotonic() + time_limit
        stop = threading.Event()
        all_done = threading.Event()
        jobs: queue.Queue[tuple[str, int]] = queue.Queue()
        results: queue.Queue = queue.Queue()
        finished = object()
        pending = [1]
        pending_lock = threading.Lock()

        def halted() -> bool:
            if stop.is_set() or all_done.is_set():
                return True
            return deadline is not None and time.monotonic() >= deadline

        def settle(added: int) -> None:
            with pending_lock:
                pending[0] += added - 1
                if pending[0] == 0:
                    all_done.set()

        def process(url: str, depth: int) -> int:
            self.stats.increment_total()
            if not self.mark_visited(url):
                self.stats.increment_skipped()
                return 0
            try:
                result = self.crawl_url(url)
            except CrawlError as exc:
                results.put(CrawlResult(url=url, depth=depth, error=exc))
                return 0
            result.depth = depth
            results.put(result)
            added = 0
            if depth < self.max_depth:
                for link in result.links:
                    if not self.is_visited(link.url):
                        jobs.put((link.url, depth + 1))
                        added += 1
            return added

        def worker() -> None:
            try:
                while not halted():
                    try:
                        url, depth = jobs.get(timeout=_POLL)
                    except queue.Empty:
                        continue
                    added = 0
                    try:
                        added = process(url, depth)
                    finally:
                        settle(added)
            finally:
                results.put(finished)

        jobs.put((start_url, 0))
        threads = [
            threading.Thread(target=worker, daemon=True) for _ in range(self.max_workers)
        ]
        for thread in threads:
            thread.start()

        remaining = len(threads)
        try:
            while remaining:
                item = results.get()
                if item is finished:
                    remaining -= 1
                else:
                    yield item
        finally:
            stop.set()