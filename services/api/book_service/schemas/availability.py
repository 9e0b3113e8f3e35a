from __future__ import annotations

from pydantic import BaseModel

from book_service.domain.types import AvailabilityRecord


class AvailabilityOut(BaseModel):
    isbn: str
    isbn_10: str | None
    availability: list[AvailabilityRecord]
