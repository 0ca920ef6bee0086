"""Shared fakes for link checker tests."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Union

import pytest

from seolinkcheck import fetcher as fetcher_module
from seolinkcheck.errors import NetworkError, RenderError
from seolinkcheck.fetcher import FetchResult


def html_page(title: Optional[str] = None, canonical: Optional[str] = None, body: str = "") -> bytes:
    head = ""
    if title is not None:
        head += f"<title>{title}</title>"
    if canonical is not None:
        head += f'<link rel="canonical" href="{canonical}">'
    return f"<html><head>{head}</head><body>{body}</body></html>".encode()


def ok(body: Union[bytes, str], content_type: str = "text/html; charset=utf-8", **headers: str) -> FetchResult:
    return FetchResult(body=body, headers={"content-type": content_type, **headers}, status_code=200)


class FakeFetcher:
    """Static fetcher answering from a URL -> FetchResult/exception table."""

    def __init__(self, responses: Dict[str, Union[FetchResult, Exception]], delay: float = 0.0):
        self.responses = responses
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self.workers_requested: List[int] = []

    def ensure_workers(self, count: int) -> None:
        self.workers_requested.append(count)

    async def fetch_async(self, url: str) -> FetchResult:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            outcome = self.responses.get(url)
            if outcome is None:
                raise NetworkError(url, "connection refused")
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1

    def close(self) -> None:
        self.closed = True


class FakeRenderer:
    """Render session answering from a URL -> rendered HTML table."""

    def __init__(self, pages: Optional[Dict[str, Union[str, Exception]]] = None):
        self.pages = pages or {}
        self.calls: List[str] = []
        self.closed = False

    async def render(self, url: str) -> FetchResult:
        self.calls.append(url)
        outcome = self.pages.get(url)
        if outcome is None:
            raise RenderError(url, "not available")
        if isinstance(outcome, Exception):
            raise outcome
        return FetchResult(body=outcome, headers={}, status_code=200)

    async def close(self) -> None:
        self.closed = True


class FakePlaywrightResponse:
    status = 200
    headers = {"content-type": "text/html"}


class FakePage:
    def __init__(self, browser):
        self.browser = browser
        self.closed = False
        self.extra_headers = None

    async def set_extra_http_headers(self, headers):
        self.extra_headers = headers

    async def goto(self, url, wait_until, timeout):
        self.browser.gotos.append((url, wait_until, timeout))
        await asyncio.sleep(0)
        outcome = self.browser.outcome
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def content(self):
        return self.browser.html

    async def close(self):
        if self.browser.page_close_error is not None:
            raise self.browser.page_close_error
        self.closed = True


class FakeBrowser:
    def __init__(self, driver):
        self.outcome = driver.outcome
        self.html = driver.html
        self.page_close_error = driver.page_close_error
        self.close_error = driver.browser_close_error
        self.pages = []
        self.gotos = []
        self.closed = False

    async def new_page(self):
        page = FakePage(self)
        self.pages.append(page)
        return page

    async def close(self):
        if self.close_error is not None:
            raise self.close_error
        self.closed = True


class FakePlaywright:
    """Stand-in for the object returned by ``async_playwright().start()``."""

    def __init__(self, outcome):
        self.launched = []
        self.stopped = False
        self.outcome = outcome
        self.html = "<html><head><title>Rendered</title></head></html>"
        self.page_close_error: Optional[Exception] = None
        self.browser_close_error: Optional[Exception] = None
        self.stop_error: Optional[Exception] = None
        self.chromium = self

    async def launch(self, headless):
        await asyncio.sleep(0)
        browser = FakeBrowser(self)
        self.launched.append((browser, headless))
        return browser

    async def stop(self):
        if self.stop_error is not None:
            raise self.stop_error
        self.stopped = True


@pytest.fixture()
def fake_playwright(monkeypatch):
    driver = FakePlaywright(FakePlaywrightResponse())

    class Starter:
        async def start(self):
            return driver

    monkeypatch.setattr(fetcher_module, "async_playwright", lambda: Starter())
    return driver


@pytest.fixture()
def run():
    """Run a coroutine to completion."""

    return asyncio.run
