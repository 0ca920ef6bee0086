"""Link verification tests."""

from __future__ import annotations

import threading

from requests.structures import CaseInsensitiveDict
from playwright.async_api import Error as PlaywrightError

from seolinkcheck.errors import RenderTimeoutError
from seolinkcheck.fetcher import FetchResult, RenderSession, StaticFetcher
from seolinkcheck.models import CrawlStats
from seolinkcheck.verifier import canonical_from_link_header, should_verify, verify_link, verify_links

from .conftest import FakeFetcher, FakeRenderer, html_page, ok

URL = "https://example.com/page"


def test_redirect_record_shape(run):
    fetcher = FakeFetcher({
        URL: FetchResult(body=b"", headers={"location": "https://example.com/new"}, status_code=301),
    })
    renderer = FakeRenderer()

    record = run(verify_link(URL, fetcher, renderer))

    assert record.status_code == 301
    assert record.redirect_location == "https://example.com/new"
    assert record.canonical_header is None
    assert record.title_static is None
    assert record.content_type is None
    assert renderer.calls == []
    assert "title_static" not in record.to_dict()


def test_html_page_is_rendered_and_compared(run):
    fetcher = FakeFetcher({
        URL: ok(
            html_page("Static title", "https://example.com/page"),
            link='<https://example.com/page>; rel="canonical"',
        ),
    })
    renderer = FakeRenderer({
        URL: "<html><head><title>Rendered title</title>"
             '<link rel="canonical" href="https://example.com/other"></head></html>',
    })

    record = run(verify_link(URL, fetcher, renderer))

    assert record.status_code == 200
    assert record.redirect_location is None
    assert record.content_type == "text/html; charset=utf-8"
    assert record.canonical_header == "https://example.com/page"
    assert record.title_static == "Static title"
    assert record.canonical_static == "https://example.com/page"
    assert record.title_rendered == "Rendered title"
    assert record.canonical_rendered == "https://example.com/other"
    assert renderer.calls == [URL]


def test_non_html_200_is_not_rendered(run):
    fetcher = FakeFetcher({URL: ok(b"%PDF-1.4", content_type="application/pdf")})
    renderer = FakeRenderer()

    record = run(verify_link(URL, fetcher, renderer))

    assert record.content_type == "application/pdf"
    assert record.title_rendered is None
    assert renderer.calls == []


def test_content_type_match_is_case_insensitive(run):
    fetcher = FakeFetcher({URL: ok(html_page("T"), content_type="TEXT/HTML")})
    renderer = FakeRenderer({URL: "<html><head><title>T</title></head></html>"})

    record = run(verify_link(URL, fetcher, renderer))

    assert record.title_rendered == "T"


def test_error_status_keeps_minimal_record(run):
    fetcher = FakeFetcher({
        URL: FetchResult(
            body=b"gone",
            headers={"location": "https://example.com/ignored", "content-type": "text/html"},
            status_code=404,
        ),
    })

    record = run(verify_link(URL, fetcher, FakeRenderer()))

    assert record.status_code == 404
    assert record.redirect_location is None
    assert record.content_type is None


def test_network_error_yields_no_record(run):
    record = run(verify_link(URL, FakeFetcher({}), FakeRenderer()))

    assert record is None


def test_render_failure_leaves_rendered_fields_empty(run):
    fetcher = FakeFetcher({URL: ok(html_page("Static", "https://example.com/page"))})
    renderer = FakeRenderer({URL: RenderTimeoutError(URL, "timeout")})
    stats = CrawlStats()

    record = run(verify_link(URL, fetcher, renderer, stats))

    assert record.title_static == "Static"
    assert record.title_rendered is None
    assert record.canonical_rendered is None
    assert stats.render_errors == 1


def test_canonical_from_link_header():
    assert canonical_from_link_header(None) is None
    assert canonical_from_link_header('<https://example.com/a>; rel="preload"') is None
    assert canonical_from_link_header('<https://example.com/a>; rel="canonical"') == "https://example.com/a"
    assert canonical_from_link_header(
        '<https://cdn.example.com/x.css>; rel="preload", <https://example.com/b>; rel="canonical"'
    ) == "https://example.com/b"


def test_one_failure_does_not_abort_the_others(run):
    good = "https://example.com/good"
    broken = "https://example.com/broken"
    crashing = "https://example.com/crashing"
    fetcher = FakeFetcher({
        good: FetchResult(body=b"", headers={}, status_code=204),
        crashing: RuntimeError("boom"),
    })
    stats = CrawlStats()

    table = run(verify_links("example.com", [good, broken, crashing], fetcher, FakeRenderer(), stats=stats))

    assert list(table) == [good]
    assert stats.links_verified == 1
    assert stats.network_errors == 1
    assert stats.other_failures == 1


def test_dispatch_filter_applies_substring_domain_check(run):
    fetcher = FakeFetcher({
        "https://example.com/a": FetchResult(body=b"", headers={}, status_code=204),
        "https://other.com/a": FetchResult(body=b"", headers={}, status_code=204),
    })

    table = run(verify_links(
        "example.com",
        ["https://example.com/a", "https://other.com/a", "mailto:x@example.com"],
        fetcher,
        FakeRenderer(),
    ))

    assert list(table) == ["https://example.com/a"]
    assert fetcher.calls == ["https://example.com/a"]


def test_should_verify():
    assert should_verify("https://example.com/x", "example.com")
    # looser than the registry's host check
    assert should_verify("https://other.com/example.com", "example.com")
    assert not should_verify("https://other.com/x", "example.com")
    assert not should_verify("example.com/x", "example.com")


def test_concurrency_limit_bounds_in_flight_fetches(run):
    urls = [f"https://example.com/p{i}" for i in range(12)]
    fetcher = FakeFetcher(
        {url: FetchResult(body=b"", headers={}, status_code=204) for url in urls},
        delay=0.01,
    )

    table = run(verify_links("example.com", urls, fetcher, FakeRenderer(), concurrency=3))

    assert len(table) == 12
    assert fetcher.max_in_flight == 3


def test_unbounded_fan_out_dispatches_everything_at_once(run):
    urls = [f"https://example.com/p{i}" for i in range(8)]
    fetcher = FakeFetcher(
        {url: FetchResult(body=b"", headers={}, status_code=204) for url in urls},
        delay=0.01,
    )

    run(verify_links("example.com", urls, fetcher, FakeRenderer(), concurrency=None))

    assert fetcher.max_in_flight == 8


class GatedSession:
    """Blocking session whose GETs wait until ``parties`` of them are in flight."""

    def __init__(self, parties):
        self.barrier = threading.Barrier(parties, timeout=5)
        self.lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def get(self, url, **kwargs):
        with self.lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.barrier.wait()
            return StubResponse()
        finally:
            with self.lock:
                self.in_flight -= 1

    def close(self):
        pass


class StubResponse:
    status_code = 204
    content = b""
    headers = CaseInsensitiveDict()


def test_unbounded_fan_out_runs_every_blocking_fetch_at_once(run):
    urls = [f"https://example.com/p{i}" for i in range(24)]
    session = GatedSession(parties=24)
    fetcher = StaticFetcher(session)

    table = run(verify_links("example.com", urls, fetcher, FakeRenderer(), concurrency=None))
    fetcher.close()

    assert len(table) == 24
    assert session.max_in_flight == 24


def test_concurrency_limit_bounds_blocking_fetches(run):
    urls = [f"https://example.com/p{i}" for i in range(12)]
    session = GatedSession(parties=4)
    fetcher = StaticFetcher(session)

    table = run(verify_links("example.com", urls, fetcher, FakeRenderer(), concurrency=4))
    fetcher.close()

    assert len(table) == 12
    assert session.max_in_flight == 4


def test_page_close_failure_keeps_the_record(run, fake_playwright):
    url = "https://example.com/a"
    fake_playwright.page_close_error = PlaywrightError("Target page, context or browser has been closed")
    fake_playwright.html = html_page("T", url).decode()
    fetcher = FakeFetcher({url: ok(html_page("T", url))})
    stats = CrawlStats()

    async def scenario():
        async with RenderSession() as renderer:
            return await verify_link(url, fetcher, renderer, stats)

    record = run(scenario())

    assert record is not None
    assert record.title_static == "T"
    assert record.title_rendered == "T"
    assert record.canonical_rendered == url
    assert stats.render_errors == 0
