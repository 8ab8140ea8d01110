"""Quality stage: validate, score and tier every processed post."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from devdose.config.settings import QualitySettings, get_settings
from devdose.models import (
    ApprovalTier,
    ProcessedPost,
    ProcessingResult,
    QualityResult,
    QualityStats,
    ScoredPost,
)
from devdose.quality.scorer import QualityScorer
from devdose.quality.syntax_validator import SyntaxValidator

logger = logging.getLogger(__name__)


class QualityService:
    """Scores posts and sorts them into approval tiers."""

    def __init__(
        self,
        settings: Optional[QualitySettings] = None,
        validator: Optional[SyntaxValidator] = None,
        scorer: Optional[QualityScorer] = None,
    ) -> None:
        self._settings = settings or get_settings().quality
        if self._settings.manual_review_threshold > self._settings.auto_approve_threshold:
            raise ValueError("manual_review_threshold must not exceed auto_approve_threshold")
        self._validator = validator or SyntaxValidator()
        self._scorer = scorer or QualityScorer()

    def tier_for(self, total: int) -> ApprovalTier:
        if total >= self._settings.auto_approve_threshold:
            return "auto_approved"
        if total >= self._settings.manual_review_threshold:
            return "manual_review"
        return "auto_rejected"

    def score_post(self, post: ProcessedPost) -> ScoredPost:
        validation = self._validator.validate(post.code, post.language)
        quality = self._scorer.score(post, validation)
        return ScoredPost(
            post=post,
            quality_score=quality,
            validation_result=validation,
            approved=quality.total >= self._settings.manual_review_threshold,
            tier=self.tier_for(quality.total),
        )

    def run(self, processing_result: ProcessingResult) -> QualityResult:
        scored = [self.score_post(post) for post in processing_result.posts]

        tiers = Counter(item.tier for item in scored)
        totals = [item.quality_score.total for item in scored]
        stats = QualityStats(
            total_scored=len(scored),
            auto_approved=tiers["auto_approved"],
            manual_review=tiers["manual_review"],
            auto_rejected=tiers["auto_rejected"],
            average_score=round(sum(totals) / len(totals), 2) if totals else 0.0,
        )
        logger.info(
            "Quality scoring complete: %d scored, %d auto-approved, %d for review, "
            "%d rejected, average %.1f",
            stats.total_scored,
            stats.auto_approved,
            stats.manual_review,
            stats.auto_rejected,
            stats.average_score,
        )
        return QualityResult(scored_posts=scored, stats=stats)
