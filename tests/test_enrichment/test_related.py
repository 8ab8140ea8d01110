"""Tests for related-post linking and the enrichment stage."""

from __future__ import annotations

from devdose.enrichment.related import related_indices
from devdose.enrichment.service import EnrichmentService
from devdose.models import (
    QualityResult,
    QualityScore,
    QualityStats,
    ScoreBreakdown,
    ScoredPost,
    ValidationResult,
)
from devdose.utils.hashing import code_hash
from tests.conftest import make_processed_post


def test_posts_sharing_tags_are_related_and_isolated_posts_are_not():
    related = related_indices([["react", "hooks"], ["react", "state"], ["css"]])
    assert related == [[1], [0], []]


def test_ranked_by_overlap_then_position_and_capped():
    tag_sets = [
        ["a", "b", "c"],
        ["a"],
        ["a", "b"],
        ["a", "b", "c"],
        ["a"],
    ]
    related = related_indices(tag_sets)
    assert related[0] == [3, 2, 1]
    assert related[1] == [0, 2, 3]
    assert all(len(r) <= 3 for r in related)


def test_empty_batch():
    assert related_indices([]) == []


def _scored(code: str, tags: list[str], approved: bool = True) -> ScoredPost:
    breakdown = ScoreBreakdown(
        code_quality=40, explanation_quality=30, source_reputation=10, uniqueness=10
    )
    return ScoredPost(
        post=make_processed_post(code=code, tags=tags),
        quality_score=QualityScore(total=90 if approved else 50, breakdown=breakdown),
        validation_result=ValidationResult(is_valid=True),
        approved=approved,
        tier="auto_approved" if approved else "auto_rejected",
    )


def test_enrichment_service_links_approved_posts_only():
    first = "let a = 1;\nlet b = 2;\nlet c = a + b;"
    second = "let d = 4;\nlet e = 5;\nlet f = d * e;"
    third = "let g = 7;\nlet h = 8;\nlet i = g - h;"
    rejected = "let j = 1;\nlet k = 2;\nlet l = j + k;"
    result = EnrichmentService().run(
        QualityResult(
            scored_posts=[
                _scored(first, ["react", "hooks"]),
                _scored(rejected, ["react"], approved=False),
                _scored(second, ["react", "state"]),
                _scored(third, ["css"]),
            ],
            stats=QualityStats(total_scored=4),
        )
    )

    posts = result.enriched_posts
    assert [p.post.code for p in posts] == [first, second, third]
    assert posts[0].post_id == code_hash(first)
    assert posts[0].enrichment.related_post_ids == [code_hash(second)]
    assert posts[1].enrichment.related_post_ids == [code_hash(first)]
    assert posts[2].enrichment.related_post_ids == []
    assert result.stats.total_enriched == 3
    assert result.stats.by_category == {"Quick Tips": 3}
