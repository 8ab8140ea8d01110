"""Tests for approval tiers and the quality stage."""

from __future__ import annotations

import pytest

from devdose.config.settings import QualitySettings
from devdose.models import (
    ProcessingResult,
    ProcessingStats,
    QualityScore,
    ScoreBreakdown,
    ValidationResult,
)
from devdose.quality.service import QualityService
from tests.conftest import make_processed_post


class _FixedScorer:
    """Returns the total stored in the post's title, e.g. title "85"."""

    def score(self, post, validation):
        total = int(post.title)
        breakdown = ScoreBreakdown(
            code_quality=min(total, 40),
            explanation_quality=min(max(total - 40, 0), 30),
            source_reputation=min(max(total - 70, 0), 20),
            uniqueness=min(max(total - 90, 0), 10),
        )
        return QualityScore(total=total, breakdown=breakdown)


class _AlwaysValid:
    def validate(self, code, language):
        return ValidationResult(is_valid=True)


def _service(auto: int = 85, manual: int = 70) -> QualityService:
    return QualityService(
        settings=QualitySettings(auto_approve_threshold=auto, manual_review_threshold=manual),
        validator=_AlwaysValid(),
        scorer=_FixedScorer(),
    )


def _posts(*totals: int) -> ProcessingResult:
    posts = [
        make_processed_post(code=f"run({i});\nstep();\ndone();", title=str(t))
        for i, t in enumerate(totals)
    ]
    return ProcessingResult(posts=posts, stats=ProcessingStats(total_processed=len(posts)))


@pytest.mark.parametrize(
    "total, tier, approved",
    [
        (85, "auto_approved", True),
        (84, "manual_review", True),
        (70, "manual_review", True),
        (69, "auto_rejected", False),
        (40, "auto_rejected", False),
    ],
)
def test_tier_boundaries(total, tier, approved):
    scored = _service().score_post(make_processed_post(title=str(total)))
    assert scored.tier == tier
    assert scored.approved is approved


def test_stats_count_each_tier():
    result = _service().run(_posts(95, 85, 75, 50))
    assert result.stats.total_scored == 4
    assert result.stats.auto_approved == 2
    assert result.stats.manual_review == 1
    assert result.stats.auto_rejected == 1
    assert result.stats.average_score == 76.25


def test_raising_manual_threshold_never_approves_more():
    totals = (60, 70, 75, 80, 85, 90)
    approved_counts = [
        sum(p.approved for p in _service(auto=90, manual=m).run(_posts(*totals)).scored_posts)
        for m in (60, 70, 80, 90)
    ]
    assert approved_counts == sorted(approved_counts, reverse=True)
    assert approved_counts == [6, 5, 3, 1]


def test_manual_threshold_above_auto_is_rejected():
    with pytest.raises(ValueError):
        _service(auto=70, manual=85)


def test_real_scorer_and_validator(settings):
    service = QualityService(settings=settings.quality)
    code = "\n".join(f"const v{i} = {i};" for i in range(12))
    scored = service.score_post(make_processed_post(code=code))
    assert scored.validation_result.is_valid
    assert scored.quality_score.total == 100
    assert scored.tier == "auto_approved"
