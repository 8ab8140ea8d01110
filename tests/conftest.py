"""
Shared test fixtures for the DevDose test suite.

Every test that touches storage gets its own temporary SQLite file with
the schema already initialized. Record factories build valid stage
records with sensible defaults; override any field via kwargs.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from devdose.config.settings import Settings
from devdose.models import (
    CodeSnippet,
    EnrichedPost,
    EnrichmentData,
    GitHubSource,
    ProcessedPost,
    ProcessingOutput,
    SnippetMetadata,
)
from devdose.storage.connection import close_connection, get_connection
from devdose.storage.models import PostRow
from devdose.storage.post_store import PostStore
from devdose.storage.schema import initialize_database
from devdose.utils.hashing import code_hash, snippet_hash

SAMPLE_CODE = """const [count, setCount] = useState(0);
useEffect(() => {
  document.title = `Clicked ${count} times`;
}, [count]);"""

SAMPLE_EXPLANATION = (
    "useEffect runs after render, and the dependency array makes React "
    "re-run the effect only when count changes, keeping the title in sync."
)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Provide a temporary SQLite database path."""
    return tmp_path / "test_devdose.db"


@pytest.fixture
def db(db_path: Path):
    """Provide an initialized database connection, closed after the test."""
    initialize_database(db_path)
    conn = get_connection(db_path)
    yield conn
    close_connection(db_path)


@pytest.fixture
def post_store(db, db_path: Path) -> PostStore:
    """Provide a PostStore connected to the test database."""
    return PostStore(db_path)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temp directory."""
    s = Settings(project_root=tmp_path)
    s.ensure_dirs()
    return s


async def no_sleep(_seconds: float) -> None:
    return None


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------


def make_github_source(owner: str = "facebook", repo: str = "react", **kwargs) -> GitHubSource:
    defaults = dict(
        name=f"{owner}/{repo}",
        url=f"https://github.com/{owner}/{repo}",
        owner=owner,
        repo=repo,
        tags=["react"],
        priority=8,
    )
    defaults.update(kwargs)
    return GitHubSource(**defaults)


def make_snippet(
    code: str = SAMPLE_CODE,
    language: str = "javascript",
    source_name: str = "facebook/react",
    **metadata,
) -> CodeSnippet:
    meta = dict(
        source_name=source_name,
        source_url=f"https://github.com/{source_name}",
        source_type="github",
        file_path="README.md",
    )
    meta.update(metadata)
    return CodeSnippet(
        code=code,
        language=language,
        metadata=SnippetMetadata(**meta),
        hash=snippet_hash(code),
    )


def make_output(**kwargs) -> ProcessingOutput:
    defaults = dict(
        title="Sync the document title with useEffect",
        explanation=SAMPLE_EXPLANATION,
        difficulty="beginner",
        category="Quick Tips",
        tags=["react", "hooks"],
        quality_score=80,
    )
    defaults.update(kwargs)
    return ProcessingOutput(**defaults)


def make_processed_post(code: str = SAMPLE_CODE, **kwargs) -> ProcessedPost:
    defaults = dict(
        title="Sync the document title with useEffect",
        explanation=SAMPLE_EXPLANATION,
        difficulty="beginner",
        category="Quick Tips",
        tags=["react", "hooks"],
        quality_score=80,
        code=code,
        language="javascript",
        source_url="https://github.com/facebook/react",
        source_name="facebook/react",
        source_type="github",
    )
    defaults.update(kwargs)
    return ProcessedPost(**defaults)


def make_enriched_post(code: str = SAMPLE_CODE, **kwargs) -> EnrichedPost:
    enrichment = kwargs.pop("enrichment", None) or EnrichmentData(
        extracted_tags=["react", "hooks"],
        reading_time_seconds=20,
        prerequisites=["JavaScript ES6", "React basics"],
    )
    post = make_processed_post(code=code, **kwargs)
    return EnrichedPost(post_id=code_hash(code), post=post, enrichment=enrichment)


def make_post_row(code: str = SAMPLE_CODE, **kwargs) -> PostRow:
    defaults = dict(
        title="Sync the document title with useEffect",
        code=code,
        language="javascript",
        explanation=SAMPLE_EXPLANATION,
        tags=["react", "hooks"],
        difficulty="beginner",
        category="Quick Tips",
        source_url="https://github.com/facebook/react",
        source_name="facebook/react",
        source_type="github",
        quality_score=88,
        reading_time_seconds=20,
        code_hash=code_hash(code),
    )
    defaults.update(kwargs)
    return PostRow(**defaults)
