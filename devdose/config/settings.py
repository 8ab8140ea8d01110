"""
Central configuration for the DevDose content pipeline.

All tunables live here. Environment variables (optionally loaded from a
``.env`` file) override the defaults through ``Settings.from_env()``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


class ConfigurationError(RuntimeError):
    """Raised when a required setting (usually a credential) is missing."""


def _project_root() -> Path:
    """Walk up from this file to find the project root (where pyproject.toml lives)."""
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    return Path(__file__).resolve().parent.parent.parent


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class GitHubSettings:
    """Settings for the GitHub REST client."""

    api_url: str = "https://api.github.com"

    # Personal access token. Required by discovery and extraction.
    token: str | None = None

    request_timeout: int = 30
    user_agent: str = "DevDose-Pipeline/0.1"

    # Retry policy for transient failures (403 rate limits, 429, 5xx).
    # Actual wait = base * 2^attempt, capped at max_backoff.
    retry_attempts: int = 3
    retry_base_delay: float = 2.0
    max_backoff: float = 30.0

    def require_token(self) -> str:
        if not self.token:
            raise ConfigurationError("GITHUB_TOKEN is required for GitHub access")
        return self.token


@dataclass(frozen=True)
class DiscoverySettings:
    """Defaults for the discovery stage."""

    topics: tuple[str, ...] = ("react", "typescript", "vue", "angular", "css", "javascript")
    min_stars: int = 1000
    max_results_per_topic: int = 50
    activity_months: int = 6
    include_awesome_lists: bool = True


@dataclass(frozen=True)
class ExtractionSettings:
    """Defaults for the extraction stage."""

    min_code_lines: int = 3
    max_code_lines: int = 20
    languages: tuple[str, ...] = ("javascript", "typescript", "css", "html")

    # Maximum repositories extracted concurrently
    max_concurrent_repos: int = 5

    # Maximum files read from a repository's examples/ directory
    max_example_files: int = 5


@dataclass(frozen=True)
class DocsSettings:
    """Settings for the documentation page scraper."""

    # Minimum delay between requests to the same host (seconds)
    request_delay: float = 2.0
    request_timeout: int = 10
    cache_ttl_days: int = 7

    # Character bounds for a code block to be kept
    min_chars: int = 50
    max_chars: int = 2000

    # Line bounds for docs blocks
    min_lines: int = 3
    max_lines: int = 50

    # Attempts per page fetch and the backoff between them (seconds)
    retry_attempts: int = 3
    retry_base_delay: float = 2.0
    max_backoff: float = 30.0

    user_agent: str = "Mozilla/5.0 (compatible; DevDoseBot/1.0; +https://devdose.app)"


@dataclass(frozen=True)
class LLMSettings:
    """Settings for the completion service."""

    # "ollama" or "gemini"
    provider: str = "ollama"
    model: str = "llama3.1"
    ollama_url: str = "http://localhost:11434"

    # Gemini API key. Required when provider == "gemini".
    api_key: str | None = None

    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 1024
    request_timeout: int = 120


@dataclass(frozen=True)
class ProcessingSettings:
    """Settings for batching and retrying completion calls."""

    batch_size: int = 15
    max_retries: int = 3
    retry_base_delay: float = 1.0
    max_backoff: float = 30.0

    # Pause between batches (seconds)
    batch_delay: float = 2.0


@dataclass(frozen=True)
class QualitySettings:
    """Approval thresholds for quality scoring. Both are inclusive."""

    auto_approve_threshold: int = 85
    manual_review_threshold: int = 70


@dataclass(frozen=True)
class PublishingSettings:
    """Settings for batched upserts into the post store."""

    batch_size: int = 100
    batch_delay: float = 0.2

    # Attempts per batch when the database is locked or busy
    retry_attempts: int = 3
    retry_base_delay: float = 0.5
    max_backoff: float = 5.0


@dataclass(frozen=True)
class StorageSettings:
    """Settings for SQLite storage."""

    db_name: str = "devdose.db"
    journal_mode: str = "WAL"

    # How long to wait for a locked DB (milliseconds)
    busy_timeout_ms: int = 5000


@dataclass(frozen=True)
class ApiSettings:
    """Settings for the read API."""

    host: str = "127.0.0.1"
    port: int = 3000
    cors_origins: tuple[str, ...] = ("*",)

    default_page_size: int = 20
    max_page_size: int = 100
    max_random: int = 10
    top_tags: int = 10


@dataclass
class Settings:
    """
    Top-level settings container. Aggregates all subsystem settings.

    Usage:
        settings = get_settings()
        print(settings.processing.batch_size)
        print(settings.quality.auto_approve_threshold)
    """

    project_root: Path = field(default_factory=_project_root)
    github: GitHubSettings = field(default_factory=GitHubSettings)
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    extraction: ExtractionSettings = field(default_factory=ExtractionSettings)
    docs: DocsSettings = field(default_factory=DocsSettings)
    llm: LLMSettings = field(default_factory=LLMSettings)
    processing: ProcessingSettings = field(default_factory=ProcessingSettings)
    quality: QualitySettings = field(default_factory=QualitySettings)
    publishing: PublishingSettings = field(default_factory=PublishingSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    api: ApiSettings = field(default_factory=ApiSettings)

    @classmethod
    def from_env(cls, project_root: Path | None = None) -> "Settings":
        """Build settings from defaults plus environment overrides."""
        settings = cls() if project_root is None else cls(project_root=project_root)

        github = replace(settings.github, token=os.environ.get("GITHUB_TOKEN") or None)
        discovery = replace(
            settings.discovery,
            topics=_env_list("TOPICS", settings.discovery.topics),
            min_stars=_env_int("MIN_STARS", settings.discovery.min_stars),
            max_results_per_topic=_env_int(
                "MAX_RESULTS_PER_TOPIC", settings.discovery.max_results_per_topic
            ),
            activity_months=_env_int("ACTIVITY_MONTHS", settings.discovery.activity_months),
        )
        extraction = replace(
            settings.extraction,
            min_code_lines=_env_int("MIN_CODE_LINES", settings.extraction.min_code_lines),
            max_code_lines=_env_int("MAX_CODE_LINES", settings.extraction.max_code_lines),
        )
        llm = replace(
            settings.llm,
            provider=os.environ.get("LLM_PROVIDER", settings.llm.provider).lower(),
            model=os.environ.get("LLM_MODEL", settings.llm.model),
            ollama_url=os.environ.get("OLLAMA_URL", settings.llm.ollama_url),
            api_key=os.environ.get("GEMINI_API_KEY") or None,
        )
        processing = replace(
            settings.processing,
            batch_size=_env_int("BATCH_SIZE", settings.processing.batch_size),
            max_retries=_env_int("MAX_RETRIES", settings.processing.max_retries),
        )
        quality = QualitySettings(
            auto_approve_threshold=_env_int(
                "AUTO_APPROVE_THRESHOLD", settings.quality.auto_approve_threshold
            ),
            manual_review_threshold=_env_int(
                "MANUAL_REVIEW_THRESHOLD", settings.quality.manual_review_threshold
            ),
        )
        publishing = replace(
            settings.publishing,
            batch_size=_env_int("BATCH_INSERT_SIZE", settings.publishing.batch_size),
        )
        api = replace(
            settings.api,
            host=os.environ.get("API_HOST", settings.api.host),
            port=_env_int("PORT", settings.api.port),
            cors_origins=_env_list("CORS_ORIGIN", settings.api.cors_origins),
        )

        return replace(
            settings,
            github=github,
            discovery=discovery,
            extraction=extraction,
            llm=llm,
            processing=processing,
            quality=quality,
            publishing=publishing,
            api=api,
        )

    @property
    def data_dir(self) -> Path:
        """Root directory for all runtime data (DB, checkpoints, caches, logs)."""
        return self.project_root / "data"

    @property
    def db_path(self) -> Path:
        """Full path to the SQLite database file."""
        return self.data_dir / "db" / self.storage.db_name

    @property
    def checkpoints_dir(self) -> Path:
        """Directory holding one JSON checkpoint per pipeline stage."""
        return self.data_dir / "checkpoints"

    @property
    def single_source_checkpoints_dir(self) -> Path:
        """Checkpoints of single-source runs, kept apart from full runs."""
        return self.checkpoints_dir / "single-source"

    @property
    def docs_cache_dir(self) -> Path:
        """Directory for cached documentation pages."""
        return self.data_dir / "cache" / "docs"

    @property
    def logs_dir(self) -> Path:
        """Root directory for log files."""
        return self.data_dir / "logs"

    def ensure_dirs(self) -> None:
        """Create all required data directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.checkpoints_dir.mkdir(parents=True, exist_ok=True)
        self.docs_cache_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Returns the singleton Settings instance.

    Loads ``.env`` from the working directory first, so local credentials
    never need to be exported by hand.
    """
    load_dotenv()
    settings = Settings.from_env()
    settings.ensure_dirs()
    return settings
