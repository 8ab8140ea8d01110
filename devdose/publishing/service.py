"""Publishing stage: enriched posts are upserted into the post store."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import Awaitable, Callable, Optional

from devdose.config.settings import PublishingSettings, get_settings
from devdose.models import EnrichedPost, EnrichmentResult, PublishingResult
from devdose.storage.models import PostRow
from devdose.storage.post_store import PostStore
from devdose.utils.hashing import code_hash
from devdose.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


def is_transient_db_error(exc: BaseException) -> bool:
    """A locked or busy database; constraint and schema errors are final."""
    return isinstance(exc, sqlite3.OperationalError)


def to_post_row(item: EnrichedPost) -> PostRow:
    post = item.post
    return PostRow(
        title=post.title,
        code=post.code,
        language=post.language,
        explanation=post.explanation,
        tags=item.all_tags,
        difficulty=post.difficulty,
        category=post.category,
        source_url=post.source_url,
        source_name=post.source_name,
        source_type=post.source_type,
        quality_score=post.quality_score,
        reading_time_seconds=item.enrichment.reading_time_seconds,
        prerequisites=item.enrichment.prerequisites,
        related_post_ids=item.enrichment.related_post_ids,
        code_hash=code_hash(post.code),
    )


class PublishingService:
    """Writes posts in batches; a batch still failing after retries is counted and skipped."""

    def __init__(
        self,
        store: Optional[PostStore] = None,
        settings: Optional[PublishingSettings] = None,
        sleep_func: Callable[[float], Awaitable[None]] = asyncio.sleep,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self._store = store or PostStore()
        self._settings = settings or get_settings().publishing
        self._sleep = sleep_func
        self._retry = retry_policy or RetryPolicy(
            max_attempts=self._settings.retry_attempts,
            base_delay=self._settings.retry_base_delay,
            max_delay=self._settings.max_backoff,
            is_retryable=is_transient_db_error,
            sleep_func=sleep_func,
        )

    async def run(self, enrichment_result: EnrichmentResult) -> PublishingResult:
        return await self.publish(enrichment_result.enriched_posts)

    async def publish(self, posts: list[EnrichedPost]) -> PublishingResult:
        rows = [to_post_row(item) for item in posts]
        batch_size = max(1, self._settings.batch_size)

        published = duplicates = failed = 0
        for start in range(0, len(rows), batch_size):
            if start:
                await self._sleep(self._settings.batch_delay)
            batch = rows[start : start + batch_size]
            try:
                inserted, updated = await self._retry.run(
                    lambda: asyncio.to_thread(self._store.upsert_many, batch),
                    description=f"upsert of batch at offset {start}",
                )
            except sqlite3.Error as exc:
                failed += len(batch)
                logger.error("Batch at offset %d (%d posts) failed: %s", start, len(batch), exc)
                continue
            published += inserted
            duplicates += updated

        result = PublishingResult(published=published, duplicates=duplicates, failed=failed)
        logger.info(
            "Publishing complete: %d new, %d duplicates updated, %d failed",
            result.published,
            result.duplicates,
            result.failed,
        )
        return result
