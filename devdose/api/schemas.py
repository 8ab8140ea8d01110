"""Pydantic response models for the read API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from devdose.storage.models import PostRow


class PostResponse(BaseModel):
    """A published card."""

    id: int
    title: str
    code: str
    language: str
    explanation: str
    tags: list[str]
    difficulty: str
    category: str
    source_url: Optional[str] = None
    source_name: Optional[str] = None
    source_type: Optional[str] = None
    quality_score: Optional[int] = None
    reading_time_seconds: Optional[int] = None
    prerequisites: list[str] = []
    related_post_ids: list[str] = []
    code_hash: str
    view_count: int = 0
    bookmark_count: int = 0
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: PostRow) -> "PostResponse":
        return cls(**row.to_dict())


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PaginatedPostsResponse(BaseModel):
    """One page of posts."""

    posts: list[PostResponse]
    pagination: Pagination


class SearchResponse(PaginatedPostsResponse):
    """Search results, best quality first."""

    query: str


class RandomPostsResponse(BaseModel):
    posts: list[PostResponse]


class ReportResponse(BaseModel):
    """Outcome of re-verifying a reported post."""

    message: str
    corrected: bool
    post: PostResponse


class CountResponse(BaseModel):
    """A named value with its number of posts."""

    name: str
    count: int


def count_list(pairs: list[tuple[str, int]]) -> list[CountResponse]:
    return [CountResponse(name=name, count=count) for name, count in pairs]


class StatsResponse(BaseModel):
    """Catalog statistics."""

    total_posts: int
    total_views: int
    languages: list[CountResponse]
    difficulties: list[CountResponse]
    top_tags: list[CountResponse]


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    detail: str
