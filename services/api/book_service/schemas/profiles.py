from __future__ import annotations

from pydantic import BaseModel, Field

from book_service.domain.types import Format, UserProfile


class ProfileCreate(BaseModel):
    id: str | None = None
    interests: list[str] = Field(default_factory=list)
    previously_read: list[str] = Field(default_factory=list)
    disliked_authors: list[str] = Field(default_factory=list)
    price_ceiling: float | None = None
    formats_accepted: list[Format] | None = None
    currency: str = "USD"


class ProfileUpdate(BaseModel):
    interests: list[str] | None = None
    previously_read: list[str] | None = None
    disliked_authors: list[str] | None = None
    price_ceiling: float | None = None
    formats_accepted: list[Format] | None = None
    currency: str | None = None


class ProfileListOut(BaseModel):
    profiles: list[UserProfile]


class HistoryIn(BaseModel):
    isbn: str = Field(min_length=1)


class InterestIn(BaseModel):
    interest: str = Field(min_length=1)


class DislikedAuthorIn(BaseModel):
    author: str = Field(min_length=1)


class SuccessOut(BaseModel):
    success: bool = True
