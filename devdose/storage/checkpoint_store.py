"""
Stage checkpoints on disk.

Each pipeline stage writes its result envelope to
``<directory>/<stage>-results.json``; the next stage (or a resumed run)
reads it back as a validated model.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, ValidationError

from devdose.models import (
    DiscoveryResult,
    EnrichmentResult,
    ExtractionResult,
    ProcessingResult,
    PublishingResult,
    QualityResult,
)

logger = logging.getLogger(__name__)

STAGE_RESULT_TYPES: dict[str, type[BaseModel]] = {
    "discovery": DiscoveryResult,
    "extraction": ExtractionResult,
    "processing": ProcessingResult,
    "quality": QualityResult,
    "enrichment": EnrichmentResult,
    "publishing": PublishingResult,
}


class CheckpointError(RuntimeError):
    """A checkpoint is missing, unreadable or does not match its stage's model."""


class CheckpointStore:
    """Typed JSON checkpoints keyed by stage name."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    def path_for(self, stage: str) -> Path:
        self._check_stage(stage)
        return self._directory / f"{stage}-results.json"

    def exists(self, stage: str) -> bool:
        return self.path_for(stage).exists()

    def save(self, stage: str, result: BaseModel) -> Path:
        """Write ``result`` atomically, replacing any previous checkpoint."""
        expected = STAGE_RESULT_TYPES[self._check_stage(stage)]
        if not isinstance(result, expected):
            raise CheckpointError(
                f"{stage} checkpoint must be {expected.__name__}, got {type(result).__name__}"
            )

        path = self.path_for(stage)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{stage}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(result.model_dump_json(indent=2))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("Saved %s checkpoint to %s", stage, path)
        return path

    def load(self, stage: str) -> BaseModel:
        """Read and validate a stage checkpoint."""
        model = STAGE_RESULT_TYPES[self._check_stage(stage)]
        path = self.path_for(stage)
        try:
            payload = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise CheckpointError(f"No {stage} checkpoint at {path}") from exc
        try:
            return model.model_validate_json(payload)
        except ValidationError as exc:
            raise CheckpointError(f"Invalid {stage} checkpoint at {path}: {exc}") from exc

    def clear(self) -> list[str]:
        """Delete every stage checkpoint; returns the stages that had one."""
        removed = []
        for stage in STAGE_RESULT_TYPES:
            path = self.path_for(stage)
            if path.exists():
                path.unlink()
                removed.append(stage)
        if removed:
            logger.info("Removed %d checkpoints from %s", len(removed), self._directory)
        return removed

    @staticmethod
    def _check_stage(stage: str) -> str:
        if stage not in STAGE_RESULT_TYPES:
            raise CheckpointError(f"Unknown pipeline stage: {stage!r}")
        return stage
