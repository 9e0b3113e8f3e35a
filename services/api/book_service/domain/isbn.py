from __future__ import annotations

import re

from book_service.domain.errors import InvalidISBNError
from book_service.domain.types import ISBNValidation

_separators = re.compile(r"[-\s]")
_isbn13_re = re.compile(r"^\d{13}$")
_isbn10_re = re.compile(r"^\d{9}[\dXx]$")


def clean_isbn(raw: str) -> str:
    """Strip hyphens and whitespace. No other characters are touched."""
    return _separators.sub("", raw or "")


def _isbn13_check_digit(first12: str) -> int:
    total = 0
    for idx, digit in enumerate(first12):
        weight = 1 if idx % 2 == 0 else 3
        total += int(digit) * weight
    return (10 - (total % 10)) % 10


def validate_isbn13(isbn: str) -> bool:
    cleaned = clean_isbn(isbn)
    if not _isbn13_re.match(cleaned):
        return False
    return _isbn13_check_digit(cleaned[:12]) == int(cleaned[12])


def validate_isbn10(isbn: str) -> bool:
    cleaned = clean_isbn(isbn)
    if not _isbn10_re.match(cleaned):
        return False

    total = sum(int(cleaned[i]) * (10 - i) for i in range(9))
    last = cleaned[9].upper()
    total += 10 if last == "X" else int(last)
    return total % 11 == 0


def isbn10_to_13(isbn10: str) -> str | None:
    cleaned = clean_isbn(isbn10)
    if not validate_isbn10(cleaned):
        return None

    base = "978" + cleaned[:9]
    return base + str(_isbn13_check_digit(base))


def validate_isbn(isbn: str) -> ISBNValidation:
    """Validate and normalize an ISBN-10 or ISBN-13.

    Dispatches purely on the cleaned length. A 13-character value that fails
    its checksum is reported as an invalid ISBN-13; it is never retried as an
    ISBN-10.
    """
    cleaned = clean_isbn(isbn)

    if len(cleaned) == 13:
        if validate_isbn13(cleaned):
            return ISBNValidation(valid=True, isbn_13=cleaned, isbn_10=None)
        return ISBNValidation(
            valid=False,
            isbn_13=None,
            isbn_10=None,
            error="Invalid ISBN-13 check digit",
        )

    if len(cleaned) == 10:
        if validate_isbn10(cleaned):
            return ISBNValidation(
                valid=True,
                isbn_13=isbn10_to_13(cleaned),
                isbn_10=cleaned.upper(),
            )
        return ISBNValidation(
            valid=False,
            isbn_13=None,
            isbn_10=None,
            error="Invalid ISBN-10 check digit",
        )

    return ISBNValidation(
        valid=False,
        isbn_13=None,
        isbn_10=None,
        error=f"Invalid ISBN length: {len(cleaned)} (expected 10 or 13)",
    )


def require_isbn13(isbn: str) -> str:
    result = validate_isbn(isbn)
    if not result.valid or result.isbn_13 is None:
        raise InvalidISBNError(isbn, result.error)
    return result.isbn_13
