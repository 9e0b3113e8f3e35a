from __future__ import annotations

from book_service.api.deps import get_lookup_orchestrator, parse_formats_param
from book_service.domain.errors import InvalidISBNError
from book_service.domain.isbn import validate_isbn
from book_service.domain.types import ISBNValidation
from book_service.schemas.availability import AvailabilityOut
from book_service.services.orchestrator import Orchestrator
from fastapi import APIRouter, Depends, Query

router = APIRouter(prefix="/api", tags=["availability"])


@router.get("/availability/{isbn}", response_model=AvailabilityOut)
async def check_availability(
    isbn: str,
    formats: str | None = Query(default=None),
    skip_cache: bool = Query(default=False),
    orchestrator: Orchestrator = Depends(get_lookup_orchestrator),
):
    validation = validate_isbn(isbn)
    if not validation.valid or validation.isbn_13 is None:
        raise InvalidISBNError(isbn, validation.error or "Invalid ISBN")

    availability = await orchestrator.check_isbn_availability(
        validation.isbn_13,
        formats=parse_formats_param(formats),
        skip_cache=skip_cache,
    )
    return AvailabilityOut(
        isbn=validation.isbn_13,
        isbn_10=validation.isbn_10,
        availability=availability,
    )


@router.get("/validate/{isbn}", response_model=ISBNValidation)
def validate(isbn: str):
    return validate_isbn(isbn)
