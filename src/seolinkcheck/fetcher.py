"""
Page acquisition: raw HTTP fetches and browser-rendered fetches.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

import requests
from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from seolinkcheck.config import BROWSER_HEADERS, DEFAULT_TIMEOUT, RENDER_TIMEOUT_MS
from seolinkcheck.errors import NetworkError, RenderError, RenderTimeoutError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FetchResult:
    """Body, lower-cased response headers and status of one fetch."""
    body: Union[bytes, str]
    headers: Dict[str, str] = field(default_factory=dict)
    status_code: int = 0


def lower_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Return a plain dict copy of ``headers`` with lower-cased names."""
    return {name.lower(): value for name, value in headers.items()}


def new_session() -> requests.Session:
    """Return a requests session carrying the browser identity headers."""
    session = requests.Session()
    session.headers.update(BROWSER_HEADERS)
    return session


class StaticFetcher:
    """
    Raw HTTP fetches with requests, run on a worker pool owned by the fetcher.

    Each worker thread gets its own session unless one is passed in. The pool
    is grown with :meth:`ensure_workers` so that callers, not a hidden default
    executor, decide how many fetches run at once.

    Redirects are not followed: the 3xx status and its ``Location`` header
    are part of what gets reported.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout_s: Optional[float] = DEFAULT_TIMEOUT,
    ) -> None:
        self.timeout_s = timeout_s
        self._shared_session = session
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._workers = 0

    def _session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = new_session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def fetch(self, url: str) -> FetchResult:
        """Fetch ``url`` once, raising NetworkError if no response arrives."""
        try:
            resp = self._session().get(url, timeout=self.timeout_s, allow_redirects=False)
        except requests.RequestException as e:
            raise NetworkError(url, str(e)) from e
        return FetchResult(
            body=resp.content,
            headers=lower_headers(resp.headers),
            status_code=resp.status_code,
        )

    def ensure_workers(self, count: int) -> None:
        """Make sure at least ``count`` fetches can run at the same time."""
        count = max(1, count)
        if self._executor is not None and self._workers >= count:
            return
        previous = self._executor
        self._executor = ThreadPoolExecutor(max_workers=count, thread_name_prefix="static-fetch")
        self._workers = count
        if previous is not None:
            previous.shutdown(wait=False)

    async def fetch_async(self, url: str) -> FetchResult:
        """Run :meth:`fetch` on the fetcher's worker pool."""
        if self._executor is None:
            self.ensure_workers(1)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.fetch, url)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
            self._workers = 0
        with self._sessions_lock:
            for session in self._sessions:
                session.close()
            self._sessions.clear()
        if self._shared_session is not None:
            self._shared_session.close()


class RenderSession:
    """
    Lazily started headless browser shared by every rendered fetch of a run.

    The browser is launched on the first :meth:`render` call and released
    when the session is closed (or its ``async with`` block exits). Each
    render opens and closes its own page.
    """

    def __init__(
        self,
        headless: bool = True,
        timeout_ms: int = RENDER_TIMEOUT_MS,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.headless = headless
        self.timeout_ms = timeout_ms
        self.headers = dict(headers or BROWSER_HEADERS)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "RenderSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def browser(self) -> Browser:
        """Return the session browser, launching it on first use."""
        async with self._lock:
            if self._browser is None:
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(headless=self.headless)
                logger.info("Browser instance created")
        return self._browser

    async def render(self, url: str) -> FetchResult:
        """Load ``url`` in a new page and return the DOM once the network settles."""
        logger.debug("Fetching rendered page for %s", url)
        try:
            browser = await self.browser()
            page = await browser.new_page()
        except PlaywrightError as e:
            raise RenderError(url, f"browser unavailable: {e}") from e

        try:
            await page.set_extra_http_headers(self.headers)
            response = await page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
            if response is None:
                raise RenderError(url, "navigation returned no response")
            body = await page.content()
            return FetchResult(
                body=body,
                headers=lower_headers(response.headers),
                status_code=response.status,
            )
        except PlaywrightTimeoutError as e:
            raise RenderTimeoutError(url, f"no network idle within {self.timeout_ms} ms") from e
        except PlaywrightError as e:
            raise RenderError(url, str(e)) from e
        finally:
            try:
                await page.close()
            except PlaywrightError as e:
                logger.warning("Could not close page for %s: %s", url, e)

    async def close(self) -> None:
        """Shut down the browser and the playwright driver if they were started."""
        browser, self._browser = self._browser, None
        driver, self._playwright = self._playwright, None
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                logger.warning("Browser did not close cleanly: %s", e)
        if driver is not None:
            try:
                await driver.stop()
            except PlaywrightError as e:
                logger.warning("Playwright driver did not stop cleanly: %s", e)
