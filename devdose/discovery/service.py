"""Discovery stage: curated sources merged with topic search results."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from devdose.config.settings import DiscoverySettings, get_settings
from devdose.discovery.curated_sources import curated_sources
from devdose.discovery.github_discovery import GitHubDiscovery
from devdose.models import DiscoveryConfig, DiscoveryResult, DiscoveryStats, Source

logger = logging.getLogger(__name__)


def discovery_stats(sources: list[Source]) -> DiscoveryStats:
    return DiscoveryStats(
        total_found=len(sources),
        by_type=dict(Counter(source.type for source in sources)),
        by_topic=dict(Counter(tag for source in sources for tag in source.tags)),
    )


def config_from_settings(settings: DiscoverySettings) -> DiscoveryConfig:
    return DiscoveryConfig(
        topics=list(settings.topics),
        min_stars=settings.min_stars,
        max_results_per_topic=settings.max_results_per_topic,
        activity_months=settings.activity_months,
        include_awesome_lists=settings.include_awesome_lists,
    )


class DiscoveryService:
    """Builds the prioritized source list for extraction."""

    def __init__(
        self,
        github: Optional[GitHubDiscovery] = None,
        settings: Optional[DiscoverySettings] = None,
    ) -> None:
        self._settings = settings or get_settings().discovery
        self._github = github or GitHubDiscovery()

    async def run(self) -> DiscoveryResult:
        return await self.discover(config_from_settings(self._settings))

    async def discover(self, config: DiscoveryConfig) -> DiscoveryResult:
        """
        Curated sources first, then search results; names are unique and the
        first occurrence wins, so curated entries are never displaced.
        """
        curated = curated_sources(config.include_awesome_lists)
        discovered = await self._github.discover_all(config)

        merged = {}
        for source in [*curated, *discovered]:
            merged.setdefault(source.name, source)
        sources = list(merged.values())

        stats = discovery_stats(sources)

        logger.info(
            "Discovery complete: %d sources (%d curated, %d discovered) by type %s",
            stats.total_found,
            len(curated),
            len(discovered),
            stats.by_type,
        )
        return DiscoveryResult(sources=sources, stats=stats)
