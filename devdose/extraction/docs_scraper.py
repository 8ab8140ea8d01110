"""
Code block scraper for rendered documentation pages.

Pages are fetched politely (a minimum delay per host, transient failures
retried with backoff) and cached on disk as msgpack files keyed by the MD5
of the URL, so repeat runs within the TTL never touch the network.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlparse

import msgpack
import requests
from bs4 import BeautifulSoup, Tag

from devdose.config.settings import DocsSettings, get_settings
from devdose.extraction.languages import LANGUAGE_ALIASES, language_from_classes
from devdose.models import CodeSnippet, SnippetMetadata
from devdose.utils.hashing import snippet_hash
from devdose.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

CODE_SELECTOR = "pre code, pre, code"
CONTEXT_HEADINGS = ["h1", "h2", "h3", "h4"]
PARAGRAPH_CONTEXT_CHARS = 100

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_transient_http_error(exc: BaseException) -> bool:
    """Network failures, timeouts, 429 and 5xx responses are worth another try."""
    if isinstance(exc, requests.HTTPError):
        response = exc.response
        return response is not None and response.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


@dataclass(frozen=True)
class DocPage:
    url: str
    name: str
    language: str
    priority: int


DOC_PAGES: tuple[DocPage, ...] = (
    DocPage("https://react.dev/learn", "React - Learn", "javascript", 10),
    DocPage("https://react.dev/reference/react/hooks", "React - Hooks Reference", "javascript", 10),
    DocPage(
        "https://www.typescriptlang.org/docs/handbook/intro.html",
        "TypeScript Handbook",
        "typescript",
        10,
    ),
    DocPage("https://vuejs.org/guide/introduction.html", "Vue.js Guide", "javascript", 10),
    DocPage(
        "https://developer.mozilla.org/en-US/docs/Web/JavaScript/Guide",
        "MDN - JavaScript Guide",
        "javascript",
        9,
    ),
    DocPage(
        "https://developer.mozilla.org/en-US/docs/Web/CSS/CSS_flexible_box_layout",
        "MDN - CSS Flexbox",
        "css",
        9,
    ),
    DocPage(
        "https://developer.mozilla.org/en-US/docs/Web/CSS/CSS_grid_layout",
        "MDN - CSS Grid",
        "css",
        9,
    ),
    DocPage("https://web.dev/learn/css", "web.dev - Learn CSS", "css", 8),
    DocPage("https://javascript.info/first-steps", "JavaScript.info - Fundamentals", "javascript", 8),
)


class DocsScraper:
    """Fetches documentation pages and turns their code blocks into snippets."""

    def __init__(
        self,
        settings: Optional[DocsSettings] = None,
        cache_dir: Optional[Path] = None,
        pages: Optional[tuple[DocPage, ...]] = None,
        session: Optional[requests.Session] = None,
        sleep_func: Callable[[float], None] = time.sleep,
        time_func: Callable[[], float] = time.time,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self._settings = settings or get_settings().docs
        self._cache_dir = cache_dir or get_settings().docs_cache_dir
        self._pages = pages if pages is not None else DOC_PAGES
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": self._settings.user_agent})
        self._sleep = sleep_func
        self._time = time_func
        self._last_request_at: dict[str, float] = {}
        self._retry = retry_policy or RetryPolicy(
            max_attempts=self._settings.retry_attempts,
            base_delay=self._settings.retry_base_delay,
            max_delay=self._settings.max_backoff,
            is_retryable=is_transient_http_error,
            blocking_sleep=sleep_func,
        )

    def scrape_all(self, use_cache: bool = True) -> list[CodeSnippet]:
        """Scrape every page, highest priority first. Failed pages are skipped."""
        snippets: list[CodeSnippet] = []
        for page in sorted(self._pages, key=lambda p: p.priority, reverse=True):
            try:
                page_snippets = self.scrape_page(page, use_cache=use_cache)
            except requests.RequestException as exc:
                logger.warning("Failed to scrape %s (%s): %s", page.name, page.url, exc)
                continue
            logger.info("Scraped %d snippets from %s", len(page_snippets), page.name)
            snippets.extend(page_snippets)
        return snippets

    def scrape_page(self, page: DocPage, use_cache: bool = True) -> list[CodeSnippet]:
        html = self._cached_html(page.url) if use_cache else None
        if html is None:
            html = self._fetch(page.url)
            self._store_html(page.url, html)
        return self.extract_code_blocks(html, page)

    def extract_code_blocks(self, html: str, page: DocPage) -> list[CodeSnippet]:
        """Code blocks within the size bounds, deduplicated within the page."""
        soup = BeautifulSoup(html, "lxml")
        seen: set[str] = set()
        snippets = []

        for element in soup.select(CODE_SELECTOR):
            code = element.get_text().strip()
            if not self._settings.min_chars <= len(code) <= self._settings.max_chars:
                continue
            line_count = len(code.split("\n"))
            if not self._settings.min_lines <= line_count <= self._settings.max_lines:
                continue

            hash_value = snippet_hash(code)
            if hash_value in seen:
                continue
            seen.add(hash_value)

            snippets.append(
                CodeSnippet(
                    code=code,
                    language=self._detect_language(element, page.language),
                    metadata=SnippetMetadata(
                        source_name=page.name,
                        source_url=page.url,
                        source_type="docs",
                        context=self._context_for(element),
                    ),
                    hash=hash_value,
                )
            )
        return snippets

    @staticmethod
    def _detect_language(element: Tag, fallback: str) -> str:
        from_class = language_from_classes(element.get("class") or [])
        if from_class:
            return from_class
        declared = element.get("data-language") or element.get("language")
        if declared:
            return LANGUAGE_ALIASES.get(declared.lower(), declared.lower())
        return fallback

    @staticmethod
    def _context_for(element: Tag) -> str:
        heading = element.find_previous(CONTEXT_HEADINGS)
        if heading is not None:
            return heading.get_text(strip=True)
        paragraph = element.find_previous("p")
        if paragraph is not None:
            return paragraph.get_text(strip=True)[:PARAGRAPH_CONTEXT_CHARS]
        return ""

    # ----- HTTP -----

    def _fetch(self, url: str) -> str:
        return self._retry.run_sync(lambda: self._get(url), description=f"fetch of {url}")

    def _get(self, url: str) -> str:
        self._wait_for_host(urlparse(url).netloc)
        response = self._session.get(url, timeout=self._settings.request_timeout)
        response.raise_for_status()
        return response.text

    def _wait_for_host(self, host: str) -> None:
        last = self._last_request_at.get(host)
        if last is not None:
            remaining = self._settings.request_delay - (self._time() - last)
            if remaining > 0:
                self._sleep(remaining)
        self._last_request_at[host] = self._time()

    # ----- Cache -----

    def _cache_path(self, url: str) -> Path:
        return self._cache_dir / f"{hashlib.md5(url.encode('utf-8')).hexdigest()}.msgpack"

    def _cached_html(self, url: str) -> Optional[str]:
        path = self._cache_path(url)
        if not path.exists():
            return None
        try:
            payload = msgpack.unpackb(path.read_bytes(), raw=False)
        except (ValueError, msgpack.exceptions.UnpackException) as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", path.name, exc)
            return None
        if not isinstance(payload, dict):
            return None

        max_age = self._settings.cache_ttl_days * 24 * 60 * 60
        if self._time() - payload.get("fetched_at", 0) > max_age:
            return None
        logger.debug("Cache hit for %s", url)
        return payload.get("html")

    def _store_html(self, url: str, html: str) -> None:
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        payload = {"url": url, "html": html, "fetched_at": self._time()}
        self._cache_path(url).write_bytes(msgpack.packb(payload, use_bin_type=True))
