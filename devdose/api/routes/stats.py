"""Catalog statistics route."""

from __future__ import annotations

from fastapi import APIRouter, Request

from devdose.api.schemas import StatsResponse, count_list

router = APIRouter(tags=["system"])


@router.get("/stats", response_model=StatsResponse)
def stats(request: Request) -> StatsResponse:
    """Return totals plus language, difficulty and top-tag breakdowns."""
    store = request.app.state.post_store
    settings = request.app.state.settings

    return StatsResponse(
        total_posts=store.count(),
        total_views=store.total_views(),
        languages=count_list(store.language_counts()),
        difficulties=count_list(store.difficulty_counts()),
        top_tags=count_list(store.tag_counts(limit=settings.api.top_tags)),
    )
