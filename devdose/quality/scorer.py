"""Deterministic quality score for a candidate card."""

from __future__ import annotations

import re

from devdose.models import ProcessedPost, QualityScore, ScoreBreakdown, ValidationResult

CODE_QUALITY_MAX = 40
EXPLANATION_QUALITY_MAX = 30
SOURCE_REPUTATION_BASE = 10
SOURCE_REPUTATION_MAX = 20
UNIQUENESS_SCORE = 10

ENGAGING_TITLE_RE = re.compile(r"vs|Hidden|Pro Tip|Secret|Trick|Pattern|Best Practice", re.IGNORECASE)

OFFICIAL_SOURCES = (
    "facebook/react",
    "microsoft/TypeScript",
    "vuejs/core",
    "angular/angular",
    "MDN",
    "react.dev",
    "typescript",
)
HIGH_QUALITY_SOURCES = ("vercel", "next.js", "web.dev", "css-tricks")


class QualityScorer:
    """
    Four weighted components summing to at most 100:

    - code quality (40): syntax validity, warnings and length
    - explanation quality (30): word count, title length, engaging title
    - source reputation (20): official and well-known sources
    - uniqueness (10): constant, duplicates are removed upstream
    """

    def score(self, post: ProcessedPost, validation: ValidationResult) -> QualityScore:
        breakdown = ScoreBreakdown(
            code_quality=self.code_quality(post.code, validation),
            explanation_quality=self.explanation_quality(post.title, post.explanation),
            source_reputation=self.source_reputation(post.source_name),
            uniqueness=UNIQUENESS_SCORE,
        )
        total = (
            breakdown.code_quality
            + breakdown.explanation_quality
            + breakdown.source_reputation
            + breakdown.uniqueness
        )
        return QualityScore(total=total, breakdown=breakdown)

    @staticmethod
    def code_quality(code: str, validation: ValidationResult) -> int:
        score = CODE_QUALITY_MAX
        if not validation.is_valid:
            score -= 20
        score -= min(5 * len(validation.warnings), 10)

        line_count = len(code.split("\n"))
        if line_count < 10:
            score -= 5
        elif line_count > 50:
            score -= 10
        return max(0, score)

    @staticmethod
    def explanation_quality(title: str, explanation: str) -> int:
        score = EXPLANATION_QUALITY_MAX

        word_count = len((explanation or "").split())
        if word_count < 10:
            score -= 15
        elif word_count > 100:
            score -= 10

        title = title or ""
        if not title:
            score -= 10
        elif len(title) > 60:
            score -= 5

        if ENGAGING_TITLE_RE.search(title):
            score += 5
        return max(0, min(EXPLANATION_QUALITY_MAX, score))

    @staticmethod
    def source_reputation(source_name: str) -> int:
        name = (source_name or "").lower()
        if any(official.lower() in name for official in OFFICIAL_SOURCES):
            return SOURCE_REPUTATION_MAX

        score = SOURCE_REPUTATION_BASE
        score += 5 * sum(1 for known in HIGH_QUALITY_SOURCES if known in name)
        return min(SOURCE_REPUTATION_MAX, score)
