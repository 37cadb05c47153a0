"""Fetching, caching and checking robots.txt rules."""

from __future__ import annotations

import re
import threading
import time
from dataclasses import dataclass, field
from urllib.parse import unquote, urlsplit

import requests

_CACHE_TTL = 24 * 60 * 60
_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass
class RobotsRules:
    """Rules read from one site's robots.txt.

    ``user_agents`` maps an agent to its rules in file order, each rule an
    ``(allowed, pattern)`` pair.
    """

    user_agents: dict[str, list[tuple[bool, str]]] = field(default_factory=dict)
    crawl_delay: dict[str, int] = field(default_factory=dict)
    sitemaps: list[str] = field(default_factory=list)
    timestamp: float = field(default_factory=time.monotonic)


def parse_robots_txt(text: str) -> RobotsRules:
    """Parse the body of a robots.txt file."""
    rules = RobotsRules()
    current_agent = ""

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        directive, colon, value = line.partition(":")
        if not colon:
            continue
        directive = directive.strip().lower()
        value = value.strip()

        if directive == "user-agent":
            current_agent = value
        elif directive in ("disallow", "allow"):
            if current_agent:
                rules.user_agents.setdefault(current_agent, []).append(
                    (directive == "allow", value)
                )
        elif directive == "crawl-delay":
            if current_agent and _INTEGER.fullmatch(value):
                rules.crawl_delay[current_agent] = int(value)
        elif directive == "sitemap":
            rules.sitemaps.append(value)

    return rules


def matches_pattern(path: str, pattern: str) -> bool:
    """Prefix match of ``path`` against a robots.txt pattern."""
    if not pattern:
        return False
    if pattern == "/":
        return True
    return path.startswith(pattern)


def check_rules(rules: RobotsRules, path: str, user_agent: str) -> bool:
    """Whether ``path`` may be crawled; the first matching rule decides."""
    applicable = rules.user_agents.get(user_agent)
    if applicable is None:
        applicable = rules.user_agents.get("*")
    if applicable is None:
        return True

    for allowed, pattern in applicable:
        if matches_pattern(path, pattern):
            return allowed
    return True


def _split_target(target_url: str) -> tuple[str, str] | None:
    try:
        parts = urlsplit(target_url)
    except ValueError:
        return None
    host = parts.netloc.rpartition("@")[2]
    return f"{parts.scheme}://{host}", unquote(parts.path)


class RobotsChecker:
    """Answers whether URLs may be crawled, caching robots.txt per site."""

    def __init__(self, session=None, timeout=30.0, cache_ttl=_CACHE_TTL):
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout
        self._cache_ttl = cache_ttl
        self._cache: dict[str, RobotsRules] = {}
        self._lock = threading.Lock()

    def can_crawl(self, target_url: str, user_agent: str) -> bool:
        """Whether ``user_agent`` may fetch ``target_url``."""
        split = _split_target(target_url)
        if split is None:
            return False
        base_url, path = split

        with self._lock:
            rules = self._cache.get(base_url)
        if rules is None or time.monotonic() - rules.timestamp >= self._cache_ttl:
            rules = self.fetch_robots_txt(base_url)
            with self._lock:
                self._cache[base_url] = rules
        return check_rules(rules, path, user_agent)

    def fetch_robots_txt(self, base_url: str) -> RobotsRules:
        """Download and parse ``base_url``/robots.txt; failures allow all."""
        try:
            response = self._session.get(base_url + "/robots.txt", timeout=self._timeout)
        except requests.RequestException:
            return RobotsRules()
        try:
            if response.status_code != 200:
                return RobotsRules()
            return parse_robots_txt(response.content.decode("utf-8", errors="replace"))
        finally:
            response.close()

    def _cached(self, target_url: str) -> RobotsRules | None:
        split = _split_target(target_url)
        if split is None:
            return None
        with self._lock:
            return self._cache.get(split[0])

    def get_crawl_delay(self, target_url: str, user_agent: str) -> float:
        """Cached crawl delay in seconds for the agent, else for ``*``, else 0."""
        rules = self._cached(target_url)
        if rules is None:
            return 0.0
        for agent in (user_agent, "*"):
            if agent in rules.crawl_delay:
                return float(rules.crawl_delay[agent])
        return 0.0

    def get_sitemaps(self, target_url: str) -> list[str]:
        """Sitemaps listed in the cached robots.txt of the URL's site."""
        rules = self._cached(target_url)
        return list(rules.sitemaps) if rules is not None else []