from __future__ import annotations

from typing import Iterable, Sequence

from book_service.domain.types import AvailabilityRecord, BookCandidate, BookResult, Format


def price_sort_key(record: AvailabilityRecord | None) -> tuple[int, float]:
    """Free (price None) sorts before every paid price; paid prices ascend."""
    if record is None or record.price is None:
        return (0, 0.0)
    return (1, record.price)


def is_valid_option(
    record: AvailabilityRecord,
    formats: Iterable[Format],
    price_ceiling: float,
) -> bool:
    if not record.in_stock:
        return False
    if record.format not in set(formats):
        return False
    # null price = free, always acceptable
    if record.price is not None and record.price > price_ceiling:
        return False
    return True


def valid_options(
    availability: Sequence[AvailabilityRecord],
    formats: Sequence[Format],
    price_ceiling: float,
) -> list[AvailabilityRecord]:
    """Records passing the in-stock/format/ceiling filter, cheapest first.

    The sort is stable, so equal prices keep source order.
    """
    accepted = set(formats)
    kept = [r for r in availability if is_valid_option(r, accepted, price_ceiling)]
    return sorted(kept, key=price_sort_key)


def build_result(
    candidate: BookCandidate,
    availability: Sequence[AvailabilityRecord],
    formats: Sequence[Format],
    price_ceiling: float,
) -> BookResult:
    options = valid_options(availability, formats, price_ceiling)
    best = options[0] if options else None
    return BookResult(
        candidate=candidate,
        availability=list(availability),
        best_option=best,
        meets_criteria=best is not None,
    )


def rank_results(results: Iterable[BookResult]) -> list[BookResult]:
    """Keep results that meet criteria, ordered by best price (free first)."""
    matching = [r for r in results if r.meets_criteria]
    return sorted(matching, key=lambda r: price_sort_key(r.best_option))
