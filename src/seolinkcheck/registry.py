"""
Frontier construction: resolve, deduplicate and domain-filter discovered links.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Set
from urllib.parse import urljoin, urlparse

from seolinkcheck.errors import InvalidURLError

logger = logging.getLogger(__name__)

WEB_SCHEMES = ("http", "https")

# whitespace, control characters and characters never legal in a URI
_ILLEGAL_URI_CHARS = re.compile(r"[\s\x00-\x1f\x7f<>\"\\^`{|}]")


def is_web_uri(url: str) -> bool:
    """Return True for syntactically valid absolute http(s) URLs."""
    if not isinstance(url, str) or not url or _ILLEGAL_URI_CHARS.search(url):
        return False
    try:
        parsed = urlparse(url)
        # .port raises ValueError for out-of-range or non-numeric ports
        parsed.port
    except ValueError:
        return False
    return parsed.scheme.lower() in WEB_SCHEMES and bool(parsed.hostname)


def hostname(url: str) -> Optional[str]:
    """Return the lower-cased host of ``url``, or None if it has none."""
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def seed_host(seed_url: str) -> str:
    """Return the seed URL's host, raising InvalidURLError for unusable seeds."""
    if not is_web_uri(seed_url):
        raise InvalidURLError(f"Invalid seed URL: {seed_url!r}")
    return hostname(seed_url)


def resolve_reference(reference: str, base: str) -> str:
    """
    Resolve ``reference`` against ``base``.

    References that already start with ``http`` are returned untouched.
    """
    if reference.startswith("http"):
        return reference
    try:
        return urljoin(base, reference)
    except ValueError as e:
        raise InvalidURLError(f"Cannot resolve {reference!r}: {e}") from e


def build_frontier(
    seed_url: str,
    *link_lists: Iterable[str],
    include_seed: bool = True,
) -> List[str]:
    """
    Build the ordered set of URLs to verify.

    All references are resolved against the seed URL, deduplicated, and
    restricted to valid web URLs on the seed's host. Longer URLs come first
    so that specific content pages are checked before short navigational ones.
    """
    host = seed_host(seed_url)

    references: List[str] = [ref for links in link_lists for ref in links]
    if include_seed:
        references.append(seed_url)

    frontier: Set[str] = set()
    for ref in references:
        if not isinstance(ref, str) or not ref:
            continue
        try:
            url = resolve_reference(ref, seed_url)
        except InvalidURLError as e:
            logger.debug("Skipping reference: %s", e)
            continue
        if url in frontier:
            continue
        if hostname(url) != host or not is_web_uri(url):
            continue
        frontier.add(url)

    return sorted(frontier, key=lambda u: (-len(u), u))
