from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Format(str, Enum):
    ebook = "ebook"
    paperback = "paperback"
    hardcover = "hardcover"
    audiobook = "audiobook"


class AvailabilityRecord(BaseModel):
    """One source's answer for one ISBN.

    ``price`` of None means the title is free from this source. A source that
    has nothing to offer produces no record at all.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    format: Format
    price: float | None = None
    currency: str = "USD"
    url: str
    estimated_delivery: str
    in_stock: bool


class RateLimit(BaseModel):
    model_config = ConfigDict(frozen=True)

    requests_per_minute: int = Field(ge=1)


class BookCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    author: str
    isbn_13: str
    isbn_10: str | None = None
    publication_year: int
    reasoning: str


class BookResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate: BookCandidate
    availability: list[AvailabilityRecord]
    best_option: AvailabilityRecord | None
    meets_criteria: bool


class UserProfile(BaseModel):
    id: str
    interests: list[str] = Field(default_factory=list)
    previously_read: list[str] = Field(default_factory=list)
    disliked_authors: list[str] = Field(default_factory=list)
    price_ceiling: float
    formats_accepted: list[Format]
    currency: str = "USD"


class ISBNValidation(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    isbn_13: str | None
    isbn_10: str | None
    error: str | None = None


class RecommendationResponse(BaseModel):
    recommendations: list[BookResult]
    # candidates evaluated for availability that had no qualifying option
    filtered_count: int
    # raw number of candidates returned by the generator
    total_candidates: int
