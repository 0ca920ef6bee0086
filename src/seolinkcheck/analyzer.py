"""
Consistency checks between the URL, its headers, and its static/rendered markup.
"""
from __future__ import annotations

import logging
from typing import Dict
from urllib.parse import urlsplit, urlunsplit

from seolinkcheck.models import LinkRecord

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}


def strip_fragment(url: str) -> str:
    """
    Return origin + path + query of ``url``.

    Scheme and host are lower-cased, a default port is dropped and an empty
    path becomes ``/``, so the result compares like a browser-normalized URL.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.hostname or ""
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if parts.port is not None and parts.port != DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


def _report(url: str, name: str, ok: bool) -> bool:
    if not ok:
        logger.warning("%s check failed for %s", name, url)
    return ok


def check_canonical_header(url: str, record: LinkRecord) -> None:
    if record.canonical_header:
        record.canonical_header_match = _report(
            url, "Canonical header", strip_fragment(url) == record.canonical_header
        )


def check_canonical_static(url: str, record: LinkRecord) -> None:
    if record.canonical_static:
        record.canonical_static_match = _report(
            url, "Canonical static", strip_fragment(url) == record.canonical_static
        )


def check_rendered_canonical(url: str, record: LinkRecord) -> None:
    if record.canonical_rendered:
        record.rendered_canonical_match = _report(
            url, "Rendered canonical", strip_fragment(url) == record.canonical_rendered
        )


def check_title(url: str, record: LinkRecord) -> None:
    if record.title_rendered and record.title_static:
        record.title_match = _report(
            url, "Title", record.title_static == record.title_rendered
        )


def check_canonical(url: str, record: LinkRecord) -> None:
    # exact comparison; neither side is defragmented
    if record.canonical_rendered and record.canonical_static:
        record.canonical_match = _report(
            url, "Canonical", record.canonical_static == record.canonical_rendered
        )


def check_seo_title(url: str, record: LinkRecord) -> None:
    if record.content_type and "html" in record.content_type:
        record.has_seo_title = _report(url, "SEO title", bool(record.title_static))


CHECKS = (
    check_canonical_header,
    check_canonical_static,
    check_rendered_canonical,
    check_title,
    check_canonical,
    check_seo_title,
)


def analyze(table: Dict[str, LinkRecord]) -> Dict[str, LinkRecord]:
    """Run every applicable check on every record; returns the same table."""
    for url, record in table.items():
        for check in CHECKS:
            check(url, record)
    return table
