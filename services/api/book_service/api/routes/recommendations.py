from __future__ import annotations

from book_service.api.deps import (
    get_orchestrator,
    get_settings,
    parse_csv_param,
    parse_formats_param,
)
from book_service.core.config import Settings
from book_service.domain.types import RecommendationResponse
from book_service.schemas.recommendations import AnonymousRecommendationIn
from book_service.services.orchestrator import (
    OrchestrationOptions,
    Orchestrator,
    anonymous_profile,
)
from fastapi import APIRouter, Depends, HTTPException, Query

router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])


@router.get("/{profile_id}", response_model=RecommendationResponse)
async def recommend_for_profile(
    profile_id: str,
    interests: str | None = Query(default=None),
    price: float | None = Query(default=None, ge=0),
    formats: str | None = Query(default=None),
    skip_cache: bool = Query(default=False),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    options = OrchestrationOptions(
        override_interests=parse_csv_param(interests),
        override_price_ceiling=price,
        override_formats=parse_formats_param(formats),
        skip_cache=skip_cache,
    )
    return await orchestrator.get_recommendations(profile_id, options)


@router.post("", response_model=RecommendationResponse)
async def recommend_anonymous(
    payload: AnonymousRecommendationIn,
    orchestrator: Orchestrator = Depends(get_orchestrator),
    cfg: Settings = Depends(get_settings),
):
    if not any(i.strip() for i in payload.interests):
        raise HTTPException(status_code=400, detail="interests array is required")

    profile = anonymous_profile(
        cfg,
        interests=payload.interests,
        previously_read=payload.previously_read,
        disliked_authors=payload.disliked_authors,
        price_ceiling=payload.price_ceiling,
        formats_accepted=payload.formats_accepted,
        currency=payload.currency,
    )
    return await orchestrator.get_recommendations_for_profile(
        profile, OrchestrationOptions(skip_cache=payload.skip_cache)
    )
