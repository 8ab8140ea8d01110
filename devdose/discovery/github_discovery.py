"""Topic-based repository discovery on GitHub."""

from __future__ import annotations

import asyncio
import calendar
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

import requests
from pydantic import ValidationError

from devdose.config.settings import GitHubSettings, get_settings
from devdose.discovery.github_client import GitHubApiError, GitHubClient, is_transient_github_error
from devdose.models import DiscoveryConfig, GitHubSource
from devdose.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

GOOD_DOCS_README_BYTES = 1000
EXAMPLE_DIRECTORIES = ("examples", "example")

_LOOKUP_ERRORS = (GitHubApiError, requests.RequestException)


def months_before(moment: date, months: int) -> date:
    """Calendar-month subtraction, clamping the day to the target month's length."""
    index = moment.year * 12 + (moment.month - 1) - months
    year, month0 = divmod(index, 12)
    day = min(moment.day, calendar.monthrange(year, month0 + 1)[1])
    return date(year, month0 + 1, day)


def build_search_query(topic: str, min_stars: int, pushed_after: date) -> str:
    return f"topic:{topic} stars:>{min_stars} pushed:>{pushed_after.isoformat()}"


def calculate_priority(stars: int, has_good_docs: bool, has_examples: bool) -> int:
    """Base 5, star tiers add up to 3, docs and examples add 1 each; max 10."""
    score = 5
    if stars > 50_000:
        score += 3
    elif stars > 10_000:
        score += 2
    elif stars > 5_000:
        score += 1
    if has_good_docs:
        score += 1
    if has_examples:
        score += 1
    return min(score, 10)


class GitHubDiscovery:
    """Searches each topic concurrently and scores every hit."""

    def __init__(
        self,
        client: Optional[GitHubClient] = None,
        settings: Optional[GitHubSettings] = None,
        retry_policy: Optional[RetryPolicy] = None,
        now_func: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._settings = settings or get_settings().github
        self._client = client or GitHubClient(self._settings)
        self._retry = retry_policy or RetryPolicy(
            max_attempts=self._settings.retry_attempts,
            base_delay=self._settings.retry_base_delay,
            max_delay=self._settings.max_backoff,
            is_retryable=is_transient_github_error,
        )
        self._now = now_func

    async def discover_all(self, config: DiscoveryConfig) -> list[GitHubSource]:
        """Run every topic search concurrently; dedupe repositories by full name."""
        groups = await asyncio.gather(*(self.discover_topic(t, config) for t in config.topics))
        found = [repo for group in groups for repo in group]

        unique: dict[str, GitHubSource] = {}
        for repo in found:
            unique.setdefault(repo.name, repo)

        logger.info(
            "GitHub discovery: %d repositories found, %d unique across %d topics",
            len(found),
            len(unique),
            len(config.topics),
        )
        return list(unique.values())

    async def discover_topic(self, topic: str, config: DiscoveryConfig) -> list[GitHubSource]:
        """Search one topic. A search that still fails after retries yields []."""
        cutoff = months_before(self._now().date(), config.activity_months)
        query = build_search_query(topic, config.min_stars, cutoff)
        logger.info("Searching GitHub: %s", query)

        try:
            items = await self._retry.run(
                lambda: asyncio.to_thread(
                    self._client.search_repositories, query, config.max_results_per_topic
                ),
                description=f"repository search for {topic!r}",
            )
        except _LOOKUP_ERRORS as exc:
            logger.warning("Discovery for topic %r failed: %s", topic, exc)
            return []

        repos = await asyncio.gather(*(self._to_source(item, topic) for item in items))
        kept = [repo for repo in repos if repo is not None]
        logger.info("Topic %r: %d repositories", topic, len(kept))
        return kept

    async def _to_source(self, item: dict[str, Any], topic: str) -> Optional[GitHubSource]:
        try:
            owner = item["owner"]["login"]
            repo = item["name"]
        except (KeyError, TypeError):
            logger.warning("Skipping malformed search result for topic %r", topic)
            return None

        has_good_docs, has_examples = await asyncio.gather(
            self._has_good_docs(owner, repo),
            self._has_examples(owner, repo),
        )
        stars = item.get("stargazers_count") or 0

        try:
            return GitHubSource(
                name=item.get("full_name") or f"{owner}/{repo}",
                url=item.get("html_url") or f"https://github.com/{owner}/{repo}",
                owner=owner,
                repo=repo,
                tags=[topic, *(item.get("topics") or [])],
                stars=stars,
                forks=item.get("forks_count"),
                language=item.get("language"),
                last_pushed=item.get("pushed_at"),
                has_examples=has_examples,
                has_good_docs=has_good_docs,
                priority=calculate_priority(stars, has_good_docs, has_examples),
            )
        except ValidationError as exc:
            logger.warning("Skipping repository %s/%s: %s", owner, repo, exc)
            return None

    async def _has_good_docs(self, owner: str, repo: str) -> bool:
        try:
            readme = await self._retry.run(
                lambda: asyncio.to_thread(self._client.get_readme, owner, repo),
                description=f"README lookup for {owner}/{repo}",
            )
        except _LOOKUP_ERRORS:
            return False
        return (readme.get("size") or 0) >= GOOD_DOCS_README_BYTES

    async def _has_examples(self, owner: str, repo: str) -> bool:
        for path in EXAMPLE_DIRECTORIES:
            try:
                await self._retry.run(
                    lambda: asyncio.to_thread(self._client.get_content, owner, repo, path),
                    description=f"{path}/ lookup for {owner}/{repo}",
                )
            except _LOOKUP_ERRORS:
                continue
            return True
        return False
