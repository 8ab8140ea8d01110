"""
Processing stage: snippets become candidate cards via the completion service.

Snippets are sent in fixed-size batches; calls inside a batch run
concurrently and batches are separated by a pause. A snippet whose every
attempt fails (transport error or unusable output) is dropped without
affecting its neighbours.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from devdose.config.settings import ProcessingSettings, get_settings
from devdose.models import (
    CodeSnippet,
    ExtractionResult,
    ProcessedPost,
    ProcessingInput,
    ProcessingOutput,
    ProcessingResult,
    ProcessingStats,
)
from devdose.processing.llm_client import CompletionClient, CompletionError, create_completion_client
from devdose.processing.prompts import (
    SYSTEM_PROMPT,
    VERIFICATION_SYSTEM_PROMPT,
    build_user_prompt,
    build_verification_prompt,
)
from devdose.processing.response_parser import InvalidOutputError, parse_processing_output
from devdose.storage.models import PostRow
from devdose.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


def _is_failed_attempt(exc: BaseException) -> bool:
    return isinstance(exc, (CompletionError, InvalidOutputError))


def to_processing_input(snippet: CodeSnippet) -> ProcessingInput:
    meta = snippet.metadata
    return ProcessingInput(
        code=snippet.code,
        language=snippet.language,
        source_context=meta.context or meta.file_path or "",
        repository_name=meta.source_name,
    )


@dataclass
class VerificationOutcome:
    """Result of re-checking a reported post."""

    corrected: bool
    original: PostRow
    suggestion: ProcessingOutput


class ProcessingService:
    """Generates and verifies cards through a ``CompletionClient``."""

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        settings: Optional[ProcessingSettings] = None,
        sleep_func: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings or get_settings().processing
        self._client = client or create_completion_client()
        self._sleep = sleep_func
        self._retry = RetryPolicy(
            max_attempts=self._settings.max_retries,
            base_delay=self._settings.retry_base_delay,
            max_delay=self._settings.max_backoff,
            is_retryable=_is_failed_attempt,
            sleep_func=sleep_func,
        )

    async def run(self, extraction_result: ExtractionResult) -> ProcessingResult:
        snippets = extraction_result.snippets
        outputs = await self.process([to_processing_input(s) for s in snippets])

        posts = [
            self._to_post(snippet, output)
            for snippet, output in zip(snippets, outputs)
            if output is not None
        ]
        scores = [post.quality_score for post in posts]
        stats = ProcessingStats(
            total_processed=len(posts),
            failed=len(snippets) - len(posts),
            by_difficulty=dict(Counter(post.difficulty for post in posts)),
            by_language=dict(Counter(post.language for post in posts)),
            average_quality_score=round(sum(scores) / len(scores), 2) if scores else 0.0,
        )
        logger.info(
            "Processing complete: %d cards, %d snippets dropped, average model score %.1f",
            stats.total_processed,
            stats.failed,
            stats.average_quality_score,
        )
        return ProcessingResult(posts=posts, stats=stats)

    async def process(self, inputs: list[ProcessingInput]) -> list[Optional[ProcessingOutput]]:
        """One output per input, in input order; ``None`` marks a dropped snippet."""
        batch_size = max(1, self._settings.batch_size)
        results: list[Optional[ProcessingOutput]] = []
        total_batches = (len(inputs) + batch_size - 1) // batch_size

        for number, start in enumerate(range(0, len(inputs), batch_size), start=1):
            if start:
                await self._sleep(self._settings.batch_delay)
            batch = inputs[start : start + batch_size]
            outputs = await asyncio.gather(*(self.process_one(item) for item in batch))
            results.extend(outputs)
            logger.info(
                "Batch %d/%d: %d/%d succeeded",
                number,
                total_batches,
                sum(1 for output in outputs if output is not None),
                len(batch),
            )
        return results

    async def process_one(self, item: ProcessingInput) -> Optional[ProcessingOutput]:
        prompt = build_user_prompt(item)
        try:
            return await self._retry.run(
                lambda: self._complete_and_parse(SYSTEM_PROMPT, prompt),
                description=f"card generation for {item.repository_name}",
            )
        except (CompletionError, InvalidOutputError) as exc:
            logger.warning("Dropping snippet from %s: %s", item.repository_name, exc)
            return None

    async def verify_and_correct(self, post: PostRow) -> Optional[VerificationOutcome]:
        """
        Ask the model to re-check a reported post.

        ``corrected`` is true when the title, explanation or code differs
        from what is stored. Returns None if no valid answer was produced.
        """
        prompt = build_verification_prompt(
            title=post.title,
            code=post.code,
            explanation=post.explanation,
            language=post.language,
            difficulty=post.difficulty,
            category=post.category,
            tags=post.tags,
        )
        try:
            suggestion = await self._retry.run(
                lambda: self._complete_and_parse(VERIFICATION_SYSTEM_PROMPT, prompt),
                description=f"verification of post {post.id}",
            )
        except (CompletionError, InvalidOutputError) as exc:
            logger.warning("Verification of post %s failed: %s", post.id, exc)
            return None

        corrected = is_meaningfully_different(post, suggestion)
        logger.info("Verified post %s: corrected=%s", post.id, corrected)
        return VerificationOutcome(corrected=corrected, original=post, suggestion=suggestion)

    async def _complete_and_parse(self, system: str, prompt: str) -> ProcessingOutput:
        response = await self._client.complete(system, prompt)
        return parse_processing_output(response)

    @staticmethod
    def _to_post(snippet: CodeSnippet, output: ProcessingOutput) -> ProcessedPost:
        return ProcessedPost(
            title=output.title,
            explanation=output.explanation,
            difficulty=output.difficulty,
            category=output.category,
            tags=output.tags,
            quality_score=output.quality_score,
            code=snippet.code,
            language=snippet.language,
            source_url=snippet.metadata.source_url,
            source_name=snippet.metadata.source_name,
            source_type=snippet.metadata.source_type,
        )


def is_meaningfully_different(post: PostRow, suggestion: ProcessingOutput) -> bool:
    if suggestion.title.strip() != post.title.strip():
        return True
    if suggestion.explanation.strip() != post.explanation.strip():
        return True
    return suggestion.code is not None and suggestion.code.strip() != post.code.strip()
