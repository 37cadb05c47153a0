"""Pulling titles, metadata, links and images out of parsed HTML."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from urllib.parse import urldefrag, urljoin

from bs4.element import NavigableString, PreformattedString, Tag

_SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:", "ftp:")
_DESCRIPTION_NAMES = {"description", "og:description"}


@dataclass(frozen=True)
class Link:
    """A hyperlink found on a page."""

    url: str
    text: str = ""


@dataclass(frozen=True)
class Image:
    """An image found on a page."""

    url: str
    alt: str = ""


def _elements(doc: Tag, name: str) -> Iterator[Tag]:
    if doc.name == name:
        yield doc
    yield from doc.find_all(name)


def _first_child_text(tag: Tag) -> str | None:
    if not tag.contents:
        return None
    first = tag.contents[0]
    if isinstance(first, NavigableString) and not isinstance(first, PreformattedString):
        return str(first)
    return None


def _attr(tag: Tag, key: str) -> str:
    value = tag.get(key)
    if value is None:
        return ""
    return value if isinstance(value, str) else " ".join(value)


def resolve_url(base_url: str, href: str) -> str:
    """Resolve ``href`` against ``base_url`` without fragment; "" if unusable."""
    if not href or href.startswith(_SKIPPED_SCHEMES) or href.startswith("#"):
        return ""
    try:
        resolved = urljoin(base_url, href)
        return urldefrag(resolved).url
    except ValueError:
        return ""


def extract_title(doc: Tag) -> str:
    """Text of the first non-empty <title>."""
    for tag in _elements(doc, "title"):
        text = _first_child_text(tag)
        if text is not None and text.strip():
            return text.strip()
    return ""


def extract_description(doc: Tag) -> str:
    """Content of the first description or og:description meta tag."""
    for meta in _elements(doc, "meta"):
        if _attr(meta, "name").lower() not in _DESCRIPTION_NAMES:
            continue
        description = _attr(meta, "content").strip()
        if description:
            return description
    return ""


def extract_keywords(doc: Tag) -> list[str]:
    """Comma-separated entries of the first non-empty keywords meta tag."""
    for meta in _elements(doc, "meta"):
        if _attr(meta, "name").lower() != "keywords":
            continue
        keywords = [word.strip() for word in _attr(meta, "content").split(",") if word.strip()]
        if keywords:
            return keywords
    return []


def extract_images(doc: Tag, base_url: str) -> list[Image]:
    """Distinct images in document order, with resolved URLs."""
    images: list[Image] = []
    seen: set[str] = set()
    for tag in _elements(doc, "img"):
        src = _attr(tag, "src")
        if not src:
            continue
        resolved = resolve_url(base_url, src)
        if resolved and resolved not in seen:
            seen.add(resolved)
            images.append(Image(url=resolved, alt=_attr(tag, "alt")))
    return images


def extract_links(
    doc: Tag,
    base_url: str,
    is_internal: Callable[[str], bool] | None = None,
) -> list[Link]:
    """Distinct links in document order that ``is_internal`` accepts."""
    links: list[Link] = []
    seen: set[str] = set()
    for tag in _elements(doc, "a"):
        href = _attr(tag, "href")
        if not href:
            continue
        text = (_first_child_text(tag) or "").strip()
        resolved = resolve_url(base_url, href)
        if not resolved or resolved in seen:
            continue
        if is_internal is not None and not is_internal(resolved):
            continue
        seen.add(resolved)
        links.append(Link(url=resolved, text=text))
    return links