from __future__ import annotations

from pydantic import BaseModel, Field

from book_service.domain.types import Format


class AnonymousRecommendationIn(BaseModel):
    interests: list[str] = Field(default_factory=list)
    previously_read: list[str] = Field(default_factory=list)
    disliked_authors: list[str] = Field(default_factory=list)
    price_ceiling: float | None = None
    formats_accepted: list[Format] | None = None
    currency: str = "USD"
    skip_cache: bool = False
