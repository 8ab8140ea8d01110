"""
Sequential six-stage pipeline with checkpointing.

Each stage consumes the previous stage's result envelope and its own
result is checkpointed before the next stage starts. A run can begin at
any stage as long as the checkpoint of the stage before it exists.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Optional

from pydantic import BaseModel

from devdose.config.settings import Settings, get_settings
from devdose.discovery.github_client import GitHubClient
from devdose.discovery.github_discovery import GitHubDiscovery
from devdose.discovery.service import DiscoveryService, discovery_stats
from devdose.enrichment.service import EnrichmentService
from devdose.extraction.github_extractor import GitHubExtractor
from devdose.extraction.service import ExtractionService
from devdose.models import (
    DiscoveryResult,
    EnrichmentResult,
    ExtractionResult,
    ProcessingResult,
    PublishingResult,
    QualityResult,
)
from devdose.processing.llm_client import create_completion_client
from devdose.processing.service import ProcessingService
from devdose.publishing.service import PublishingService
from devdose.quality.service import QualityService
from devdose.storage.checkpoint_store import CheckpointStore
from devdose.storage.post_store import PostStore

logger = logging.getLogger(__name__)

STAGES: tuple[str, ...] = (
    "discovery",
    "extraction",
    "processing",
    "quality",
    "enrichment",
    "publishing",
)


class PipelineError(RuntimeError):
    """A stage aborted; the run stops at that stage."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"Stage '{stage}' failed: {cause}")


def summarize(stage: str, result: BaseModel) -> dict[str, Any]:
    """Flat counters for one stage result, used for logs and CLI output."""
    if isinstance(result, DiscoveryResult):
        return {"sources": result.stats.total_found, **result.stats.by_type}
    if isinstance(result, ExtractionResult):
        return {
            "snippets": result.stats.total_extracted,
            "duplicates_removed": result.stats.duplicates_removed,
        }
    if isinstance(result, ProcessingResult):
        return {
            "processed": result.stats.total_processed,
            "failed": result.stats.failed,
            "average_model_score": result.stats.average_quality_score,
        }
    if isinstance(result, QualityResult):
        return {
            "scored": result.stats.total_scored,
            "auto_approved": result.stats.auto_approved,
            "manual_review": result.stats.manual_review,
            "auto_rejected": result.stats.auto_rejected,
            "average_score": result.stats.average_score,
        }
    if isinstance(result, EnrichmentResult):
        return {
            "enriched": result.stats.total_enriched,
            "tags_added": result.stats.tags_added,
            "average_reading_time": result.stats.average_reading_time,
        }
    if isinstance(result, PublishingResult):
        return {
            "published": result.published,
            "duplicates": result.duplicates,
            "failed": result.failed,
        }
    raise ValueError(f"No summary for {stage} result {type(result).__name__}")


class Pipeline:
    """
    Runs stages in order, reading and writing checkpoints.

    Services may be injected; any that are not are built from settings on
    first use, so a run that starts at ``quality`` never needs GitHub or
    model credentials.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        checkpoints: Optional[CheckpointStore] = None,
        discovery: Optional[DiscoveryService] = None,
        extraction: Optional[ExtractionService] = None,
        processing: Optional[ProcessingService] = None,
        quality: Optional[QualityService] = None,
        enrichment: Optional[EnrichmentService] = None,
        publishing: Optional[PublishingService] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._checkpoints = checkpoints or CheckpointStore(self._settings.checkpoints_dir)
        self._services: dict[str, Any] = {
            "discovery": discovery,
            "extraction": extraction,
            "processing": processing,
            "quality": quality,
            "enrichment": enrichment,
            "publishing": publishing,
        }

    async def run(
        self,
        start_stage: str = "discovery",
        include_docs: bool = False,
    ) -> dict[str, dict[str, Any]]:
        """
        Run ``start_stage`` and every stage after it.

        Returns one summary dict per completed stage. Raises PipelineError
        on the first stage that aborts; earlier checkpoints stay on disk.
        """
        start = _stage_index(start_stage)
        logger.info("Pipeline starting at %s", start_stage)

        previous = self._load_input(start_stage)
        summaries: dict[str, dict[str, Any]] = {}
        for stage in STAGES[start:]:
            previous = await self._execute(stage, previous, include_docs)
            summaries[stage] = summarize(stage, previous)

        logger.info("Pipeline complete: %s", summaries.get("publishing", {}))
        return summaries

    async def run_source(self, url: str, include_docs: bool = False) -> dict[str, dict[str, Any]]:
        """
        Run extraction through publishing for one discovered source.

        The source is looked up by URL in the discovery checkpoint. Its
        intermediate results are checkpointed under a separate directory so
        a full run's checkpoints are left alone. Stops after extraction when
        the source yields no snippets.
        """
        discovered = self._load_input("extraction")
        source = next((s for s in discovered.sources if s.url == url), None)
        if source is None:
            raise PipelineError("discovery", LookupError(f"No discovered source with URL {url}"))

        logger.info("Single-source run for %s (%s)", source.name, url)
        scratch = CheckpointStore(self._settings.single_source_checkpoints_dir)
        previous: BaseModel = DiscoveryResult(sources=[source], stats=discovery_stats([source]))
        scratch.save("discovery", previous)

        summaries: dict[str, dict[str, Any]] = {}
        for stage in STAGES[1:]:
            previous = await self._execute(stage, previous, include_docs, scratch)
            summaries[stage] = summarize(stage, previous)
            if isinstance(previous, ExtractionResult) and not previous.snippets:
                logger.warning("No snippets extracted from %s; stopping", source.name)
                break
        return summaries

    async def run_stage(self, stage: str, include_docs: bool = False) -> BaseModel:
        """Run a single stage from the previous stage's checkpoint."""
        _stage_index(stage)
        return await self._execute(stage, self._load_input(stage), include_docs)

    async def _execute(
        self,
        stage: str,
        previous: Optional[BaseModel],
        include_docs: bool,
        checkpoints: Optional[CheckpointStore] = None,
    ) -> BaseModel:
        logger.info("=== Stage: %s ===", stage)
        try:
            service = self._service(stage)
            if stage == "discovery":
                outcome = service.run()
            elif stage == "extraction":
                outcome = service.run(previous, include_docs=include_docs)
            else:
                outcome = service.run(previous)
            result = await outcome if inspect.isawaitable(outcome) else outcome
            (checkpoints or self._checkpoints).save(stage, result)
        except Exception as exc:
            logger.exception("Stage %s aborted", stage)
            raise PipelineError(stage, exc) from exc

        logger.info("Stage %s finished: %s", stage, summarize(stage, result))
        return result

    def _load_input(self, stage: str) -> Optional[BaseModel]:
        index = _stage_index(stage)
        if index == 0:
            return None
        previous_stage = STAGES[index - 1]
        try:
            return self._checkpoints.load(previous_stage)
        except Exception as exc:
            raise PipelineError(stage, exc) from exc

    def _service(self, stage: str):
        service = self._services.get(stage)
        if service is None:
            service = self._build_service(stage)
            self._services[stage] = service
        return service

    def _build_service(self, stage: str):
        s = self._settings
        if stage == "discovery":
            client = GitHubClient(s.github)
            return DiscoveryService(GitHubDiscovery(client, s.github), s.discovery)
        if stage == "extraction":
            extractor = GitHubExtractor(
                GitHubClient(s.github),
                s.github,
                max_example_files=s.extraction.max_example_files,
            )
            return ExtractionService(extractor, settings=s)
        if stage == "processing":
            return ProcessingService(create_completion_client(s.llm), s.processing)
        if stage == "quality":
            return QualityService(s.quality)
        if stage == "enrichment":
            return EnrichmentService()
        return PublishingService(PostStore(s.db_path), s.publishing)


def _stage_index(stage: str) -> int:
    try:
        return STAGES.index(stage)
    except ValueError:
        raise ValueError(f"Unknown stage {stage!r}; expected one of {', '.join(STAGES)}") from None
