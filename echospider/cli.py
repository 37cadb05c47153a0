"""Command-line interface: crawl a site or start the web server."""

from __future__ import annotations

import argparse
import re
import sys
from decimal import Decimal, InvalidOperation
from urllib.parse import urlsplit

from .crawler import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_WORKERS,
    DEFAULT_TIMEOUT,
    Crawler,
)
from .server import serve_frontend

_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_PART = re.compile(r"([0-9]*(?:\.[0-9]*)?)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """Parse a duration such as ``10s``, ``1m30s`` or ``250ms`` into seconds."""
    original = text
    invalid = ValueError(f'time: invalid duration "{original}"')
    sign = 1
    if text and text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise invalid

    total_nanos = Decimal(0)
    pos = 0
    while pos < len(text):
        match = _PART.match(text, pos)
        if match is None or match.group(1) in ("", "."):
            raise invalid
        try:
            amount = Decimal(match.group(1))
        except InvalidOperation:
            raise invalid from None
        total_nanos += amount * _UNIT_NANOS[match.group(2)]
        pos = match.end()
    return sign * int(total_nanos) / 1_000_000_000


def _duration(text: str) -> float:
    try:
        return parse_duration(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    """The argument parser with its ``crawl`` and ``server`` commands."""
    parser = argparse.ArgumentParser(
        prog="echospider",
        description="EchoSpider - High-performance concurrent web crawler",
    )
    commands = parser.add_subparsers(dest="command", metavar="command")

    crawl = commands.add_parser("crawl", help="Crawl a website")
    crawl.add_argument("url", help="URL to start crawling from")
    crawl.add_argument(
        "-d", "--depth", type=int, default=DEFAULT_MAX_DEPTH, help="Maximum crawl depth"
    )
    crawl.add_argument(
        "-w", "--workers", type=int, default=DEFAULT_MAX_WORKERS, help="Number of workers"
    )
    crawl.add_argument(
        "-t", "--timeout", type=_duration, default=DEFAULT_TIMEOUT, help="Request timeout"
    )
    crawl.add_argument(
        "-r",
        "--robots",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Respect robots.txt",
    )

    commands.add_parser("server", help="Start web server with frontend interface")
    return parser


def _run_crawl(args: argparse.Namespace) -> int:
    start_url = args.url
    try:
        urlsplit(start_url)
    except ValueError as exc:
        print(f"Error: Invalid URL: {exc}", file=sys.stderr)
        return 1

    crawler = Crawler(args.depth, args.workers, args.timeout, args.robots)
    print(f"Crawling {start_url} (depth: {args.depth}, workers: {args.workers})")

    count = 0
    for result in crawler.crawl(start_url, time_limit=args.timeout * 10):
        count += 1
        if result.error is not None:
            print(f"Error {result.url}: {result.error}")
        else:
            print(f"Success {result.url} [{result.status_code}] - {result.title}")

    print(f"\nCrawl completed: {count} pages found")
    return 0


def main(argv=None) -> int:
    """Run the command line; returns the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "crawl":
        return _run_crawl(args)
    if args.command == "server":
        serve_frontend()
        return 0
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())