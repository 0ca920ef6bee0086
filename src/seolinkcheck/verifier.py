"""
Per-link verification: static fetch, conditional rendered fetch, record assembly.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Dict, Iterable, Optional

from requests.utils import parse_header_links

from seolinkcheck.errors import NetworkError, RenderError
from seolinkcheck.extract import extract_head_metadata
from seolinkcheck.fetcher import FetchResult, RenderSession, StaticFetcher
from seolinkcheck.models import CrawlStats, LinkRecord
from seolinkcheck.registry import is_web_uri

logger = logging.getLogger(__name__)


def canonical_from_link_header(value: Optional[str]) -> Optional[str]:
    """Return the target of the first ``rel="canonical"`` entry of a Link header."""
    if not value or 'rel="canonical"' not in value:
        return None
    for link in parse_header_links(value):
        rels = link.get("rel", "").lower().split()
        if "canonical" in rels and link.get("url"):
            return link["url"]
    return None


def redirect_location(result: FetchResult) -> Optional[str]:
    if 300 <= result.status_code < 400:
        return result.headers.get("location")
    return None


async def verify_link(
    url: str,
    fetcher: StaticFetcher,
    renderer: RenderSession,
    stats: Optional[CrawlStats] = None,
) -> Optional[LinkRecord]:
    """
    Verify a single URL.

    Returns None when the static fetch fails outright; the URL is then left
    out of the results. A failed render only leaves the rendered fields empty.
    """
    try:
        resp = await fetcher.fetch_async(url)
    except NetworkError as e:
        logger.error("Error on %s: %s", url, e.reason)
        return None

    status_code = resp.status_code
    record = LinkRecord(
        url=url,
        status_code=status_code,
        redirect_location=redirect_location(resp),
        canonical_header=canonical_from_link_header(resp.headers.get("link")),
    )
    logger.info("Checked %s - Status: %s", url, status_code)

    if status_code != 200:
        return record

    record.content_type = resp.headers.get("content-type")
    static = extract_head_metadata(resp.body)
    record.title_static = static.title
    record.canonical_static = static.canonical

    if record.content_type and "text/html" in record.content_type.lower():
        try:
            rendered = await renderer.render(url)
        except RenderError as e:
            logger.warning("Render failed for %s: %s", url, e.reason)
            if stats is not None:
                stats.render_errors += 1
        else:
            meta = extract_head_metadata(rendered.body, head_only=False)
            record.title_rendered = meta.title
            record.canonical_rendered = meta.canonical

    return record


def should_verify(url: str, domain: str) -> bool:
    """Dispatch-time guard: valid web URL whose text mentions the domain."""
    return domain in url and is_web_uri(url)


async def verify_links(
    domain: str,
    urls: Iterable[str],
    fetcher: StaticFetcher,
    renderer: RenderSession,
    concurrency: Optional[int] = None,
    stats: Optional[CrawlStats] = None,
) -> Dict[str, LinkRecord]:
    """
    Verify ``urls`` concurrently and return the link status table.

    ``concurrency`` caps the number of verifications in flight; None or 0
    dispatches all of them at once.
    """
    table: Dict[str, LinkRecord] = {}
    limiter = asyncio.Semaphore(concurrency) if concurrency else None
    pending = [url for url in urls if should_verify(url, domain)]
    # one fetch worker per verification allowed in flight
    fetcher.ensure_workers(concurrency or len(pending))

    async def check(url: str) -> None:
        async with limiter if limiter is not None else contextlib.nullcontext():
            record = await verify_link(url, fetcher, renderer, stats)
        if stats is not None:
            stats.record_result(record)
        if record is not None:
            table[url] = record

    outcomes = await asyncio.gather(*(check(url) for url in pending), return_exceptions=True)
    for url, outcome in zip(pending, outcomes):
        if isinstance(outcome, Exception):
            logger.error("Error on %s: %r", url, outcome)
            if stats is not None:
                stats.other_failures += 1
    return table
