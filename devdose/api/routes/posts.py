"""Post routes: listing, random picks, search, detail and reports."""

from __future__ import annotations

import logging
import math
import sqlite3
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from devdose.api.schemas import (
    PaginatedPostsResponse,
    Pagination,
    PostResponse,
    RandomPostsResponse,
    ReportResponse,
    SearchResponse,
)
from devdose.config.settings import ConfigurationError
from devdose.processing.llm_client import create_completion_client
from devdose.processing.reports import PostNotFoundError, VerificationFailedError, handle_report
from devdose.processing.service import ProcessingService
from devdose.storage.post_store import PostFilter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])

SortField = Literal["created_at", "quality_score", "reading_time_seconds", "title"]


def _split_tags(tags: Optional[str]) -> list[str]:
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


def _pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


def _processor(request: Request) -> ProcessingService:
    state = request.app.state
    if state.processor is None:
        settings = state.settings
        state.processor = ProcessingService(
            create_completion_client(settings.llm), settings.processing
        )
    return state.processor


@router.get("", response_model=PaginatedPostsResponse)
def list_posts(
    request: Request,
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(20, ge=1, le=100, description="Posts per page"),
    language: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    tags: Optional[str] = Query(None, description="Comma-separated; every tag must match"),
    sort: SortField = Query("created_at"),
    order: Literal["asc", "desc"] = Query("desc"),
) -> PaginatedPostsResponse:
    """Filtered, sorted page of posts."""
    store = request.app.state.post_store
    filters = PostFilter(
        language=language,
        difficulty=difficulty,
        category=category,
        tags=_split_tags(tags),
    )
    rows, total = store.list_posts(
        filters, sort=sort, order=order, limit=limit, offset=(page - 1) * limit
    )
    return PaginatedPostsResponse(
        posts=[PostResponse.from_row(row) for row in rows],
        pagination=_pagination(page, limit, total),
    )


@router.get("/random", response_model=RandomPostsResponse)
def random_posts(
    request: Request,
    count: int = Query(1, ge=1, description="Number of posts, capped by the server"),
    language: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
) -> RandomPostsResponse:
    store = request.app.state.post_store
    count = min(count, request.app.state.settings.api.max_random)
    rows = store.random(count, PostFilter(language=language, difficulty=difficulty))
    return RandomPostsResponse(posts=[PostResponse.from_row(row) for row in rows])


@router.get("/search", response_model=SearchResponse)
def search_posts(
    request: Request,
    q: str = Query(..., min_length=2, max_length=200, description="Search text"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> SearchResponse:
    """Substring search over titles and explanations, best quality first."""
    store = request.app.state.post_store
    rows, total = store.search(q, limit=limit, offset=(page - 1) * limit)
    return SearchResponse(
        query=q,
        posts=[PostResponse.from_row(row) for row in rows],
        pagination=_pagination(page, limit, total),
    )


@router.get("/{post_id}", response_model=PostResponse)
def get_post(request: Request, post_id: int) -> PostResponse:
    """Single post; each read counts as a view."""
    store = request.app.state.post_store
    post = store.get_by_id(post_id)
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    store.increment_view_count(post_id)
    post.view_count += 1
    return PostResponse.from_row(post)


@router.post("/{post_id}/report", response_model=ReportResponse)
async def report_post(request: Request, post_id: int) -> ReportResponse:
    """Re-verify a post with the model and store any correction."""
    store = request.app.state.post_store
    try:
        outcome = await handle_report(post_id, store, _processor(request))
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="Post not found")
    except VerificationFailedError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    except ConfigurationError as exc:
        logger.error("Cannot verify reported post %d: %s", post_id, exc)
        raise HTTPException(status_code=503, detail="Verification is not configured")
    except sqlite3.IntegrityError:
        raise HTTPException(
            status_code=409, detail="Corrected code duplicates an existing post"
        )

    message = "Post corrected" if outcome.corrected else "Post verified, no changes needed"
    return ReportResponse(
        message=message,
        corrected=outcome.corrected,
        post=PostResponse.from_row(outcome.post),
    )
