"""Extraction stage: discovered sources in, deduplicated snippets out."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Optional

from devdose.config.settings import Settings, get_settings
from devdose.extraction.deduplicator import Deduplicator
from devdose.extraction.docs_scraper import DocsScraper
from devdose.extraction.github_extractor import GitHubExtractor
from devdose.models import (
    CodeSnippet,
    DiscoveryResult,
    ExtractionConfig,
    ExtractionResult,
    ExtractionStats,
    GitHubSource,
    Source,
)

logger = logging.getLogger(__name__)


class ExtractionService:
    """Runs repository extraction with bounded concurrency, then dedups once."""

    def __init__(
        self,
        extractor: Optional[GitHubExtractor] = None,
        docs_scraper: Optional[DocsScraper] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._extractor = extractor or GitHubExtractor(
            settings=self._settings.github,
            max_example_files=self._settings.extraction.max_example_files,
        )
        self._docs_scraper = docs_scraper

    def default_config(self, include_docs: bool = False) -> ExtractionConfig:
        extraction = self._settings.extraction
        return ExtractionConfig(
            min_code_lines=extraction.min_code_lines,
            max_code_lines=extraction.max_code_lines,
            languages=list(extraction.languages),
            include_docs=include_docs,
        )

    async def run(
        self,
        discovery_result: DiscoveryResult,
        include_docs: bool = False,
    ) -> ExtractionResult:
        return await self.extract(discovery_result.sources, self.default_config(include_docs))

    async def extract(self, sources: list[Source], config: ExtractionConfig) -> ExtractionResult:
        repos = [source for source in sources if isinstance(source, GitHubSource)]
        logger.info(
            "Extracting from %d GitHub repositories (%d at a time)",
            len(repos),
            self._settings.extraction.max_concurrent_repos,
        )

        limit = asyncio.Semaphore(self._settings.extraction.max_concurrent_repos)

        async def _bounded(repo: GitHubSource) -> list[CodeSnippet]:
            async with limit:
                try:
                    return await self._extractor.extract_from_repo(repo, config)
                except Exception as exc:
                    logger.warning("Extraction from %s failed: %s", repo.name, exc)
                    return []

        groups = await asyncio.gather(*(_bounded(repo) for repo in repos))
        candidates = [snippet for group in groups for snippet in group]

        if config.include_docs:
            candidates.extend(await self._docs_snippets(config))

        # One pass, one seen-set: the first snippet of each hash survives.
        unique = Deduplicator().deduplicate(candidates)

        stats = ExtractionStats(
            total_extracted=len(unique),
            duplicates_removed=len(candidates) - len(unique),
            by_language=dict(Counter(s.language for s in unique)),
            by_source=dict(Counter(s.metadata.source_name for s in unique)),
        )
        logger.info(
            "Extraction complete: %d unique snippets, %d duplicates removed",
            stats.total_extracted,
            stats.duplicates_removed,
        )
        return ExtractionResult(snippets=unique, stats=stats)

    async def _docs_snippets(self, config: ExtractionConfig) -> list[CodeSnippet]:
        scraper = self._docs_scraper or DocsScraper(
            settings=self._settings.docs,
            cache_dir=self._settings.docs_cache_dir,
        )
        scraped = await asyncio.to_thread(scraper.scrape_all)
        kept = [snippet for snippet in scraped if snippet.language in config.languages]
        logger.info("Docs scraping: %d snippets, %d in allowed languages", len(scraped), len(kept))
        return kept
