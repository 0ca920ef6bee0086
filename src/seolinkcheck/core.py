"""
Run orchestration: discover links on the seed, verify, analyze and rank them.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from seolinkcheck.analyzer import analyze
from seolinkcheck.config import CheckSettings
from seolinkcheck.errors import NetworkError, RenderError
from seolinkcheck.extract import extract_feed_links, extract_markup_links, is_feed_url
from seolinkcheck.fetcher import RenderSession, StaticFetcher
from seolinkcheck.models import CrawlStats, LinkRecord
from seolinkcheck.ranker import rank
from seolinkcheck.registry import build_frontier, seed_host
from seolinkcheck.verifier import verify_links

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CheckResult:
    """Ranked link table and statistics of one run."""
    seed_url: str
    links: Dict[str, LinkRecord] = field(default_factory=dict)
    stats: CrawlStats = field(default_factory=CrawlStats)


async def collect_static_links(url: str, fetcher: StaticFetcher) -> List[str]:
    """Links found in the raw HTML of ``url``; empty if the fetch fails."""
    try:
        resp = await fetcher.fetch_async(url)
    except NetworkError as e:
        logger.error("Error on %s: %s", url, e.reason)
        return []
    return extract_markup_links(resp.body)


async def collect_rendered_links(url: str, renderer: RenderSession) -> List[str]:
    """Links found in the rendered DOM of ``url``; empty if rendering fails."""
    try:
        resp = await renderer.render(url)
    except RenderError as e:
        logger.warning("Render failed for %s: %s", url, e.reason)
        return []
    return extract_markup_links(resp.body)


async def collect_feed_links(url: str, fetcher: StaticFetcher) -> List[str]:
    """URLs mentioned in the feed at ``url``; empty if the fetch fails."""
    try:
        resp = await fetcher.fetch_async(url)
    except NetworkError as e:
        logger.error("Error on %s: %s", url, e.reason)
        return []
    return extract_feed_links(resp.body)


async def discover(seed_url: str, fetcher: StaticFetcher, renderer: RenderSession) -> List[str]:
    """Build the crawl frontier for ``seed_url``."""
    if is_feed_url(seed_url):
        feed_links = await collect_feed_links(seed_url, fetcher)
        return build_frontier(seed_url, feed_links, include_seed=False)

    static_links = await collect_static_links(seed_url, fetcher)
    rendered_links = await collect_rendered_links(seed_url, renderer)
    return build_frontier(seed_url, static_links, rendered_links)


async def check_site_async(
    seed_url: str,
    settings: Optional[CheckSettings] = None,
    fetcher: Optional[StaticFetcher] = None,
    renderer: Optional[RenderSession] = None,
) -> CheckResult:
    """
    Check every same-domain link referenced by ``seed_url``.

    Args:
        seed_url: Page or feed URL to start from.
        settings: Run settings; defaults are used when omitted.
        fetcher: Static fetcher to use. Created (and closed) here if omitted.
        renderer: Browser session to use. Created (and closed) here if omitted.

    Returns:
        CheckResult with the ranked link table.

    Raises:
        InvalidURLError: ``seed_url`` is not a usable web URL.
    """
    settings = settings or CheckSettings()
    domain = seed_host(seed_url)

    own_fetcher = fetcher is None
    own_renderer = renderer is None
    if fetcher is None:
        fetcher = StaticFetcher(timeout_s=settings.timeout_s)
    if renderer is None:
        renderer = RenderSession(
            headless=settings.headless,
            timeout_ms=settings.render_timeout_ms,
        )

    result = CheckResult(seed_url=seed_url)
    try:
        logger.info("Crawling %s", seed_url)
        frontier = await discover(seed_url, fetcher, renderer)
        result.stats.links_discovered = len(frontier)

        logger.info("Checking %d links for domain %s", len(frontier), domain)
        table = await verify_links(
            domain,
            frontier,
            fetcher,
            renderer,
            concurrency=settings.concurrency,
            stats=result.stats,
        )
    finally:
        if own_renderer:
            await renderer.close()
        if own_fetcher:
            fetcher.close()

    analyze(table)
    for record in table.values():
        result.stats.record_analysis(record)
    result.links = rank(table)
    return result


def check_site(seed_url: str, settings: Optional[CheckSettings] = None) -> CheckResult:
    """Blocking wrapper around :func:`check_site_async`."""
    return asyncio.run(check_site_async(seed_url, settings))
