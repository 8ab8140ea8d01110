"""Handling of user reports against published posts."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from devdose.processing.service import ProcessingService
from devdose.storage.models import PostRow
from devdose.storage.post_store import PostStore

logger = logging.getLogger(__name__)


class PostNotFoundError(LookupError):
    """The reported post id does not exist."""


class VerificationFailedError(RuntimeError):
    """The model gave no usable answer for a reported post."""


@dataclass
class ReportOutcome:
    corrected: bool
    post: PostRow


async def handle_report(
    post_id: int,
    store: PostStore,
    processor: ProcessingService,
) -> ReportOutcome:
    """
    Re-verify a post and store the model's correction if it differs.

    Raises sqlite3.IntegrityError when corrected code collides with
    another post's code.
    """
    post = await asyncio.to_thread(store.get_by_id, post_id)
    if post is None:
        raise PostNotFoundError(f"Post {post_id} not found")

    outcome = await processor.verify_and_correct(post)
    if outcome is None:
        raise VerificationFailedError(f"Verification of post {post_id} produced no result")
    if not outcome.corrected:
        return ReportOutcome(corrected=False, post=post)

    suggestion = outcome.suggestion
    code = suggestion.code
    if code is not None and code.strip() == post.code.strip():
        code = None
    updated = await asyncio.to_thread(
        store.apply_correction, post_id, suggestion.title, suggestion.explanation, code
    )
    logger.info("Post %d corrected after report", post_id)
    return ReportOutcome(corrected=True, post=updated or post)
