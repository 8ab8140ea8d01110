"""
DDL for the published-posts store.

``posts`` is keyed by an integer id but deduplicated on ``code_hash``:
the same code is never stored twice. List-valued columns (tags,
prerequisites, related ids) hold JSON arrays.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from devdose.storage.connection import get_connection

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_POSTS_DDL = """
CREATE TABLE IF NOT EXISTS posts (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    title                 TEXT NOT NULL,
    code                  TEXT NOT NULL,
    language              TEXT NOT NULL,
    explanation           TEXT NOT NULL,
    tags                  TEXT NOT NULL DEFAULT '[]',
    difficulty            TEXT NOT NULL
        CHECK (difficulty IN ('beginner', 'intermediate', 'advanced')),
    category              TEXT NOT NULL
        CHECK (category IN ('Quick Tips', 'Common Mistakes', 'Did You Know',
                            'Quick Wins', 'Under the Hood')),
    source_url            TEXT,
    source_name           TEXT,
    source_type           TEXT,
    quality_score         INTEGER,
    reading_time_seconds  INTEGER,
    prerequisites         TEXT NOT NULL DEFAULT '[]',
    related_post_ids      TEXT NOT NULL DEFAULT '[]',
    view_count            INTEGER NOT NULL DEFAULT 0,
    bookmark_count        INTEGER NOT NULL DEFAULT 0,
    code_hash             TEXT NOT NULL UNIQUE,
    created_at            TEXT NOT NULL,
    updated_at            TEXT NOT NULL
);
"""

_POSTS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_posts_language ON posts(language);",
    "CREATE INDEX IF NOT EXISTS idx_posts_difficulty ON posts(difficulty);",
    "CREATE INDEX IF NOT EXISTS idx_posts_category ON posts(category);",
    "CREATE INDEX IF NOT EXISTS idx_posts_quality_score ON posts(quality_score DESC);",
    "CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts(created_at DESC);",
]


def initialize_database(db_path: Optional[Path] = None) -> None:
    """Create the posts table and its indexes. Safe to call repeatedly."""
    conn = get_connection(db_path)
    with conn:
        conn.execute(_POSTS_DDL)
        for statement in _POSTS_INDEXES:
            conn.execute(statement)
        conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
    logger.info("Post store schema ready (version %d)", SCHEMA_VERSION)


def get_schema_version(db_path: Optional[Path] = None) -> int:
    row = get_connection(db_path).execute("PRAGMA user_version").fetchone()
    return row[0] if row else 0
