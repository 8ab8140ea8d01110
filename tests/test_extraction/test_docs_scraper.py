"""Tests for documentation scraping and the page cache."""

from __future__ import annotations

import msgpack
import requests

from devdose.config.settings import DocsSettings
from devdose.extraction.docs_scraper import DocPage, DocsScraper, is_transient_http_error

BLOCK = "const list = [1, 2, 3];\nconst doubled = list.map((n) => n * 2);\nconsole.log(doubled);"

HTML = f"""
<html><body>
  <h2>Transforming arrays</h2>
  <pre><code class="language-js">{BLOCK}</code></pre>
  <p>Styling a flex container takes one declaration and a couple of options.</p>
  <pre data-language="css">.row {{
  display: flex;
  flex-wrap: wrap;
  gap: 1rem;
  align-items: center;
}}</pre>
  <code>tiny()</code>
</body></html>
"""

PAGE = DocPage("https://docs.example.com/arrays", "Example Docs", "javascript", 9)


class _FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class _FakeSession:
    def __init__(self, pages: dict):
        self.pages = pages
        self.headers: dict = {}
        self.requested: list[str] = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        if url not in self.pages:
            raise requests.ConnectionError(f"cannot reach {url}")
        page = self.pages[url]
        if isinstance(page, list):
            return page.pop(0)
        return _FakeResponse(page)


class _Clock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now
        self.slept: list[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.slept.append(seconds)
        self.now += seconds


def _scraper(tmp_path, session, clock, pages=(PAGE,)) -> DocsScraper:
    return DocsScraper(
        settings=DocsSettings(),
        cache_dir=tmp_path / "cache",
        pages=pages,
        session=session,
        sleep_func=clock.sleep,
        time_func=clock.time,
    )


def test_code_blocks_are_extracted_with_language_and_context(tmp_path):
    scraper = _scraper(tmp_path, _FakeSession({}), _Clock())
    snippets = scraper.extract_code_blocks(HTML, PAGE)

    assert len(snippets) == 2
    js, css = snippets
    assert js.code == BLOCK
    assert js.language == "javascript"
    assert js.metadata.context == "Transforming arrays"
    assert js.metadata.source_type == "docs"
    assert css.language == "css"


def test_pages_are_cached_and_reused(tmp_path):
    session = _FakeSession({PAGE.url: HTML})
    clock = _Clock()
    scraper = _scraper(tmp_path, session, clock)

    first = scraper.scrape_all()
    second = scraper.scrape_all()

    assert session.requested == [PAGE.url]
    assert [s.hash for s in first] == [s.hash for s in second]
    cached = list((tmp_path / "cache").glob("*.msgpack"))
    assert len(cached) == 1
    payload = msgpack.unpackb(cached[0].read_bytes(), raw=False)
    assert payload["url"] == PAGE.url


def test_expired_cache_is_refetched(tmp_path):
    session = _FakeSession({PAGE.url: HTML})
    clock = _Clock()
    scraper = _scraper(tmp_path, session, clock)

    scraper.scrape_all()
    clock.now += 8 * 24 * 60 * 60
    scraper.scrape_all()

    assert session.requested == [PAGE.url, PAGE.url]


def test_unreachable_page_is_skipped_and_hosts_are_throttled(tmp_path):
    other = DocPage("https://docs.example.com/other", "Other", "javascript", 8)
    missing = DocPage("https://docs.example.com/missing", "Missing", "javascript", 7)
    session = _FakeSession({PAGE.url: HTML, other.url: HTML})
    clock = _Clock()
    scraper = _scraper(tmp_path, session, clock, pages=(missing, other, PAGE))

    snippets = scraper.scrape_all(use_cache=False)

    assert session.requested == [PAGE.url, other.url, missing.url, missing.url, missing.url]
    assert len(snippets) == 4
    # two host delays, then the backoff between the three attempts on the missing page
    assert clock.slept == [2.0, 2.0, 2.0, 4.0]


def test_server_errors_are_retried_with_backoff(tmp_path):
    session = _FakeSession({PAGE.url: [_FakeResponse("", 503), _FakeResponse(HTML)]})
    clock = _Clock()
    scraper = _scraper(tmp_path, session, clock)

    snippets = scraper.scrape_all(use_cache=False)

    assert session.requested == [PAGE.url, PAGE.url]
    assert len(snippets) == 2
    assert clock.slept == [2.0]


def test_client_errors_are_not_retried(tmp_path):
    session = _FakeSession({PAGE.url: [_FakeResponse("", 404), _FakeResponse(HTML)]})
    scraper = _scraper(tmp_path, session, _Clock())

    assert scraper.scrape_all(use_cache=False) == []
    assert session.requested == [PAGE.url]


def test_transient_error_classification():
    assert is_transient_http_error(requests.Timeout("slow"))
    assert is_transient_http_error(requests.HTTPError(response=_FakeResponse("", 429)))
    assert not is_transient_http_error(requests.HTTPError(response=_FakeResponse("", 403)))
    assert not is_transient_http_error(ValueError("bad html"))
