"""
Typed records exchanged between pipeline stages.

Every stage consumes the previous stage's result envelope and produces its
own; all of them are pydantic models so checkpoints are validated on read.
Records are frozen: a stage builds new records instead of editing old ones.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

Difficulty = Literal["beginner", "intermediate", "advanced"]
Category = Literal["Quick Tips", "Common Mistakes", "Did You Know", "Quick Wins", "Under the Hood"]
SnippetSourceType = Literal["github", "docs", "blog"]
ApprovalTier = Literal["auto_approved", "manual_review", "auto_rejected"]

DIFFICULTIES: tuple[str, ...] = ("beginner", "intermediate", "advanced")
CATEGORIES: tuple[str, ...] = (
    "Quick Tips",
    "Common Mistakes",
    "Did You Know",
    "Quick Wins",
    "Under the Hood",
)

EXPLANATION_MIN_WORDS = 10
EXPLANATION_MAX_WORDS = 120
TITLE_MAX_CHARS = 60


def utc_now_iso() -> str:
    """ISO 8601 timestamp in UTC, used for result envelopes."""
    return datetime.now(timezone.utc).isoformat()


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class _SourceBase(_Record):
    name: str
    url: str
    tags: list[str] = Field(default_factory=list)
    priority: int = Field(ge=1, le=10)
    last_checked: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: list[str]) -> list[str]:
        return list(dict.fromkeys(tags))


class CatalogSource(_SourceBase):
    """A documentation site, blog or awesome list."""

    type: Literal["docs", "blog", "awesome"]


class GitHubSource(_SourceBase):
    """A GitHub repository, either curated or found by topic search."""

    type: Literal["github"] = "github"
    owner: str
    repo: str
    stars: Optional[int] = None
    forks: Optional[int] = None
    language: Optional[str] = None
    last_pushed: Optional[str] = None
    has_examples: bool = False
    has_good_docs: bool = False


Source = Annotated[Union[GitHubSource, CatalogSource], Field(discriminator="type")]


class DiscoveryConfig(BaseModel):
    topics: list[str] = Field(
        default_factory=lambda: ["react", "typescript", "vue", "angular", "css", "javascript"]
    )
    min_stars: int = Field(default=1000, ge=0)
    max_results_per_topic: int = Field(default=50, ge=1, le=100)
    activity_months: int = Field(default=6, ge=1)
    include_awesome_lists: bool = True


class DiscoveryStats(_Record):
    total_found: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)
    by_topic: dict[str, int] = Field(default_factory=dict)


class DiscoveryResult(_Record):
    sources: list[Source]
    stats: DiscoveryStats
    timestamp: str = Field(default_factory=utc_now_iso)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class LineRange(_Record):
    start: int
    end: int


class SnippetMetadata(_Record):
    source_name: str
    source_url: str
    source_type: SnippetSourceType
    file_path: Optional[str] = None
    context: Optional[str] = None
    line_numbers: Optional[LineRange] = None


class CodeSnippet(_Record):
    """A raw code block with provenance. ``hash`` is over normalized code."""

    code: str
    language: str
    metadata: SnippetMetadata
    hash: str


class ExtractionConfig(BaseModel):
    min_code_lines: int = Field(default=3, ge=1)
    max_code_lines: int = Field(default=20, ge=1)
    languages: list[str] = Field(
        default_factory=lambda: ["javascript", "typescript", "css", "html"]
    )
    include_docs: bool = False

    @model_validator(mode="after")
    def _check_line_bounds(self) -> "ExtractionConfig":
        if self.min_code_lines > self.max_code_lines:
            raise ValueError("min_code_lines must not exceed max_code_lines")
        return self

    def accepts(self, language: str, line_count: int) -> bool:
        return (
            language in self.languages
            and self.min_code_lines <= line_count <= self.max_code_lines
        )


class ExtractionStats(_Record):
    total_extracted: int = 0
    duplicates_removed: int = 0
    by_language: dict[str, int] = Field(default_factory=dict)
    by_source: dict[str, int] = Field(default_factory=dict)


class ExtractionResult(_Record):
    snippets: list[CodeSnippet]
    stats: ExtractionStats
    timestamp: str = Field(default_factory=utc_now_iso)


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------


class ProcessingInput(_Record):
    code: str
    language: str
    source_context: str = ""
    repository_name: str


class _CardFields(_Record):
    """Fields the language model must produce for a card."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(min_length=1, max_length=TITLE_MAX_CHARS)
    explanation: str
    difficulty: Difficulty
    category: Category
    tags: list[str] = Field(min_length=1)
    quality_score: int = Field(
        ge=1,
        le=100,
        validation_alias=AliasChoices("quality_score", "qualityScore"),
    )

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("explanation")
    @classmethod
    def _explanation_word_bounds(cls, value: str) -> str:
        words = len(value.split())
        if not EXPLANATION_MIN_WORDS <= words <= EXPLANATION_MAX_WORDS:
            raise ValueError(
                f"explanation must have {EXPLANATION_MIN_WORDS}-{EXPLANATION_MAX_WORDS} "
                f"words, got {words}"
            )
        return value


class ProcessingOutput(_CardFields):
    """Validated model output. ``code`` is only present when the model
    rewrote the snippet (verification flow)."""

    code: Optional[str] = None


class ProcessedPost(_CardFields):
    code: str
    language: str
    source_url: str
    source_name: str
    source_type: str


class ProcessingStats(_Record):
    total_processed: int = 0
    failed: int = 0
    by_difficulty: dict[str, int] = Field(default_factory=dict)
    by_language: dict[str, int] = Field(default_factory=dict)
    average_quality_score: float = 0.0


class ProcessingResult(_Record):
    posts: list[ProcessedPost]
    stats: ProcessingStats
    timestamp: str = Field(default_factory=utc_now_iso)


# ---------------------------------------------------------------------------
# Quality
# ---------------------------------------------------------------------------


class ValidationResult(_Record):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ScoreBreakdown(_Record):
    code_quality: int = Field(ge=0, le=40)
    explanation_quality: int = Field(ge=0, le=30)
    source_reputation: int = Field(ge=0, le=20)
    uniqueness: int = Field(ge=0, le=10)


class QualityScore(_Record):
    total: int = Field(ge=0, le=100)
    breakdown: ScoreBreakdown


class ScoredPost(_Record):
    post: ProcessedPost
    quality_score: QualityScore
    validation_result: ValidationResult
    approved: bool
    tier: ApprovalTier


class QualityStats(_Record):
    total_scored: int = 0
    auto_approved: int = 0
    manual_review: int = 0
    auto_rejected: int = 0
    average_score: float = 0.0


class QualityResult(_Record):
    scored_posts: list[ScoredPost]
    stats: QualityStats
    timestamp: str = Field(default_factory=utc_now_iso)


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------


class EnrichmentData(_Record):
    extracted_tags: list[str] = Field(default_factory=list)
    reading_time_seconds: int = Field(ge=0)
    prerequisites: list[str] = Field(default_factory=list)
    related_post_ids: list[str] = Field(default_factory=list)
    updated_at: str = Field(default_factory=utc_now_iso)


class EnrichedPost(_Record):
    """An approved post plus metadata. ``post_id`` is the post's code hash."""

    post_id: str
    post: ProcessedPost
    enrichment: EnrichmentData

    @property
    def all_tags(self) -> list[str]:
        return list(dict.fromkeys([*self.post.tags, *self.enrichment.extracted_tags]))


class EnrichmentStats(_Record):
    total_enriched: int = 0
    average_reading_time: float = 0.0
    tags_added: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)


class EnrichmentResult(_Record):
    enriched_posts: list[EnrichedPost]
    stats: EnrichmentStats
    timestamp: str = Field(default_factory=utc_now_iso)


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


class PublishingResult(_Record):
    published: int = 0
    duplicates: int = 0
    failed: int = 0
    timestamp: str = Field(default_factory=utc_now_iso)
