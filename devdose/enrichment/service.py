"""Enrichment stage: metadata for approved posts, then related-post links."""

from __future__ import annotations

import logging
from collections import Counter

from devdose.enrichment.enricher import enrich_post
from devdose.enrichment.related import related_indices
from devdose.models import (
    EnrichedPost,
    EnrichmentResult,
    EnrichmentStats,
    QualityResult,
    ScoredPost,
)
from devdose.utils.hashing import code_hash

logger = logging.getLogger(__name__)


class EnrichmentService:
    """Two phases: independent per-post enrichment, then batch-wide linking."""

    def run(self, quality_result: QualityResult) -> EnrichmentResult:
        approved = [scored for scored in quality_result.scored_posts if scored.approved]
        logger.info(
            "Enriching %d approved posts of %d scored",
            len(approved),
            len(quality_result.scored_posts),
        )
        enriched = self.enrich(approved)

        reading_times = [item.enrichment.reading_time_seconds for item in enriched]
        stats = EnrichmentStats(
            total_enriched=len(enriched),
            average_reading_time=(
                round(sum(reading_times) / len(reading_times), 2) if reading_times else 0.0
            ),
            tags_added=sum(len(item.enrichment.extracted_tags) for item in enriched),
            by_category=dict(Counter(item.post.category for item in enriched)),
        )
        logger.info(
            "Enrichment complete: %d posts, %d tags added, average reading time %.1fs",
            stats.total_enriched,
            stats.tags_added,
            stats.average_reading_time,
        )
        return EnrichmentResult(enriched_posts=enriched, stats=stats)

    def enrich(self, approved: list[ScoredPost]) -> list[EnrichedPost]:
        first_pass = [
            EnrichedPost(
                post_id=code_hash(scored.post.code),
                post=scored.post,
                enrichment=enrich_post(scored.post),
            )
            for scored in approved
        ]

        links = related_indices([item.all_tags for item in first_pass])
        return [
            item.model_copy(
                update={
                    "enrichment": item.enrichment.model_copy(
                        update={"related_post_ids": [first_pass[j].post_id for j in related]}
                    )
                }
            )
            for item, related in zip(first_pass, links)
        ]
