"""
Read/write access to the ``posts`` table.

Writes are upserts keyed on ``code_hash``; reads cover the filters,
paging and aggregates the read API needs.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from devdose.models import DIFFICULTIES, utc_now_iso
from devdose.storage.connection import get_connection
from devdose.storage.models import PostRow
from devdose.utils.hashing import code_hash

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = ("created_at", "quality_score", "reading_time_seconds", "title", "view_count")

_COLUMNS = (
    "title, code, language, explanation, tags, difficulty, category, "
    "source_url, source_name, source_type, quality_score, reading_time_seconds, "
    "prerequisites, related_post_ids, code_hash, created_at, updated_at"
)

# Re-publishing a card refreshes its content but keeps identity and engagement.
_UPSERT_SQL = f"""
    INSERT INTO posts ({_COLUMNS})
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(code_hash) DO UPDATE SET
        title = excluded.title,
        language = excluded.language,
        explanation = excluded.explanation,
        tags = excluded.tags,
        difficulty = excluded.difficulty,
        category = excluded.category,
        source_url = excluded.source_url,
        source_name = excluded.source_name,
        source_type = excluded.source_type,
        quality_score = excluded.quality_score,
        reading_time_seconds = excluded.reading_time_seconds,
        prerequisites = excluded.prerequisites,
        related_post_ids = excluded.related_post_ids,
        updated_at = excluded.updated_at
"""


@dataclass
class PostFilter:
    """Optional equality filters. ``tags`` requires every listed tag."""

    language: Optional[str] = None
    difficulty: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    def to_sql(self) -> tuple[str, list]:
        clauses: list[str] = []
        params: list = []
        for column in ("language", "difficulty", "category"):
            value = getattr(self, column)
            if value:
                clauses.append(f"{column} = ?")
                params.append(value)
        for tag in self.tags:
            clauses.append("EXISTS (SELECT 1 FROM json_each(posts.tags) WHERE value = ?)")
            params.append(tag)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostStore:
    """CRUD and query interface for published posts."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self._db_path = db_path

    @property
    def _conn(self):
        return get_connection(self._db_path)

    # ----- Write operations -----

    def upsert_many(self, rows: list[PostRow]) -> tuple[int, int]:
        """
        Insert rows, updating any whose ``code_hash`` already exists.

        Returns ``(inserted, updated)``. A hash repeated inside ``rows``
        counts as an update for every occurrence after the first.
        """
        if not rows:
            return 0, 0

        hashes = list(dict.fromkeys(row.code_hash for row in rows))
        placeholders = ",".join("?" for _ in hashes)

        with self._conn:
            existing = {
                r["code_hash"]
                for r in self._conn.execute(
                    f"SELECT code_hash FROM posts WHERE code_hash IN ({placeholders})",
                    hashes,
                ).fetchall()
            }
            self._conn.executemany(_UPSERT_SQL, [self._row_params(row) for row in rows])

        inserted = updated = 0
        for row in rows:
            if row.code_hash in existing:
                updated += 1
            else:
                inserted += 1
                existing.add(row.code_hash)

        logger.debug("Upserted %d posts (%d new, %d updated)", len(rows), inserted, updated)
        return inserted, updated

    def increment_view_count(self, post_id: int) -> None:
        with self._conn:
            self._conn.execute(
                "UPDATE posts SET view_count = view_count + 1 WHERE id = ?", (post_id,)
            )

    def apply_correction(
        self,
        post_id: int,
        title: str,
        explanation: str,
        code: Optional[str] = None,
    ) -> Optional[PostRow]:
        """
        Overwrite a post's title/explanation (and code, re-hashing it).

        Raises sqlite3.IntegrityError if the corrected code already belongs
        to another post.
        """
        now = utc_now_iso()
        with self._conn:
            if code is None:
                self._conn.execute(
                    "UPDATE posts SET title = ?, explanation = ?, updated_at = ? WHERE id = ?",
                    (title, explanation, now, post_id),
                )
            else:
                self._conn.execute(
                    "UPDATE posts SET title = ?, explanation = ?, code = ?, code_hash = ?, "
                    "updated_at = ? WHERE id = ?",
                    (title, explanation, code, code_hash(code), now, post_id),
                )
        logger.info("Applied correction to post %d", post_id)
        return self.get_by_id(post_id)

    def delete_all(self) -> int:
        with self._conn:
            count = self._conn.execute("DELETE FROM posts").rowcount
        logger.warning("Deleted all %d posts", count)
        return count

    # ----- Read operations -----

    def get_by_id(self, post_id: int) -> Optional[PostRow]:
        row = self._conn.execute("SELECT * FROM posts WHERE id = ?", (post_id,)).fetchone()
        return self._row_to_post(row) if row else None

    def get_by_code_hash(self, hash_value: str) -> Optional[PostRow]:
        row = self._conn.execute(
            "SELECT * FROM posts WHERE code_hash = ?", (hash_value,)
        ).fetchone()
        return self._row_to_post(row) if row else None

    def list_posts(
        self,
        filters: Optional[PostFilter] = None,
        sort: str = "created_at",
        order: str = "desc",
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[PostRow], int]:
        """Return one page of posts plus the exact total matching ``filters``."""
        if sort not in SORTABLE_COLUMNS:
            raise ValueError(f"Cannot sort by {sort!r}")
        direction = "ASC" if order.lower() == "asc" else "DESC"
        where, params = (filters or PostFilter()).to_sql()

        total = self._conn.execute(
            f"SELECT COUNT(*) AS cnt FROM posts {where}", params
        ).fetchone()["cnt"]
        rows = self._conn.execute(
            f"SELECT * FROM posts {where} ORDER BY {sort} {direction}, id {direction} "
            "LIMIT ? OFFSET ?",
            [*params, limit, offset],
        ).fetchall()
        return [self._row_to_post(r) for r in rows], total

    def search(self, query: str, limit: int = 20, offset: int = 0) -> tuple[list[PostRow], int]:
        """Case-insensitive substring match on title or explanation, best first."""
        pattern = f"%{_escape_like(query)}%"
        where = "WHERE title LIKE ? ESCAPE '\\' OR explanation LIKE ? ESCAPE '\\'"
        total = self._conn.execute(
            f"SELECT COUNT(*) AS cnt FROM posts {where}", (pattern, pattern)
        ).fetchone()["cnt"]
        rows = self._conn.execute(
            f"SELECT * FROM posts {where} ORDER BY quality_score DESC, id ASC LIMIT ? OFFSET ?",
            (pattern, pattern, limit, offset),
        ).fetchall()
        return [self._row_to_post(r) for r in rows], total

    def random(self, count: int, filters: Optional[PostFilter] = None) -> list[PostRow]:
        where, params = (filters or PostFilter()).to_sql()
        rows = self._conn.execute(
            f"SELECT * FROM posts {where} ORDER BY RANDOM() LIMIT ?", [*params, count]
        ).fetchall()
        return [self._row_to_post(r) for r in rows]

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) AS cnt FROM posts").fetchone()["cnt"]

    def total_views(self) -> int:
        row = self._conn.execute(
            "SELECT COALESCE(SUM(view_count), 0) AS views FROM posts"
        ).fetchone()
        return row["views"]

    def tag_counts(self, limit: Optional[int] = None) -> list[tuple[str, int]]:
        sql = (
            "SELECT value AS tag, COUNT(*) AS cnt FROM posts, json_each(posts.tags) "
            "GROUP BY value ORDER BY cnt DESC, tag ASC"
        )
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        return [(r["tag"], r["cnt"]) for r in self._conn.execute(sql, params).fetchall()]

    def language_counts(self) -> list[tuple[str, int]]:
        rows = self._conn.execute(
            "SELECT language, COUNT(*) AS cnt FROM posts GROUP BY language "
            "ORDER BY cnt DESC, language ASC"
        ).fetchall()
        return [(r["language"], r["cnt"]) for r in rows]

    def difficulty_counts(self) -> list[tuple[str, int]]:
        """Counts for every difficulty, ordered beginner to advanced."""
        rows = self._conn.execute(
            "SELECT difficulty, COUNT(*) AS cnt FROM posts GROUP BY difficulty"
        ).fetchall()
        counts = {r["difficulty"]: r["cnt"] for r in rows}
        return [(level, counts.get(level, 0)) for level in DIFFICULTIES]

    def _row_to_post(self, row) -> PostRow:
        return PostRow(
            id=row["id"],
            title=row["title"],
            code=row["code"],
            language=row["language"],
            explanation=row["explanation"],
            tags=json.loads(row["tags"]),
            difficulty=row["difficulty"],
            category=row["category"],
            source_url=row["source_url"],
            source_name=row["source_name"],
            source_type=row["source_type"],
            quality_score=row["quality_score"],
            reading_time_seconds=row["reading_time_seconds"],
            prerequisites=json.loads(row["prerequisites"]),
            related_post_ids=json.loads(row["related_post_ids"]),
            code_hash=row["code_hash"],
            view_count=row["view_count"],
            bookmark_count=row["bookmark_count"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _row_params(row: PostRow) -> tuple:
        return (
            row.title,
            row.code,
            row.language,
            row.explanation,
            json.dumps(row.tags, ensure_ascii=False),
            row.difficulty,
            row.category,
            row.source_url,
            row.source_name,
            row.source_type,
            row.quality_score,
            row.reading_time_seconds,
            json.dumps(row.prerequisites, ensure_ascii=False),
            json.dumps(row.related_post_ids, ensure_ascii=False),
            row.code_hash,
            row.created_at,
            row.updated_at,
        )
