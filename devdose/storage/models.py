"""
Row model for the ``posts`` table.

A plain dataclass: list-valued fields are real lists here and are
serialized to JSON arrays by ``PostStore``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional

from devdose.models import utc_now_iso


@dataclass
class PostRow:
    """A published micro-learning card."""

    title: str
    code: str
    language: str
    explanation: str
    difficulty: str
    category: str

    # MD5 of the raw code. Unique across the table.
    code_hash: str

    tags: list[str] = field(default_factory=list)
    source_url: Optional[str] = None
    source_name: Optional[str] = None
    source_type: Optional[str] = None
    quality_score: Optional[int] = None
    reading_time_seconds: Optional[int] = None
    prerequisites: list[str] = field(default_factory=list)

    # code hashes of up to three related posts
    related_post_ids: list[str] = field(default_factory=list)

    # Assigned by SQLite on insert
    id: Optional[int] = None

    view_count: int = 0
    bookmark_count: int = 0
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        return asdict(self)
