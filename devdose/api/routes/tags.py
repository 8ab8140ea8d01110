"""Facet routes: tags, languages and difficulties with post counts."""

from __future__ import annotations

from fastapi import APIRouter, Request

from devdose.api.schemas import CountResponse, count_list

router = APIRouter(tags=["facets"])


@router.get("/tags", response_model=list[CountResponse])
def tags(request: Request) -> list[CountResponse]:
    """All tags, most used first."""
    return count_list(request.app.state.post_store.tag_counts())


@router.get("/languages", response_model=list[CountResponse])
def languages(request: Request) -> list[CountResponse]:
    return count_list(request.app.state.post_store.language_counts())


@router.get("/difficulties", response_model=list[CountResponse])
def difficulties(request: Request) -> list[CountResponse]:
    """Every difficulty level, beginner to advanced, including empty ones."""
    return count_list(request.app.state.post_store.difficulty_counts())
