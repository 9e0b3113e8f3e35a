from __future__ import annotations

from typing import Iterable

from book_service.domain.isbn import clean_isbn
from book_service.domain.types import BookCandidate


def _author_key(name: str) -> str:
    return (name or "").strip().lower()


def filter_previously_read(
    candidates: Iterable[BookCandidate], previously_read: Iterable[str]
) -> list[BookCandidate]:
    """Drop candidates whose ISBN-13 or ISBN-10 appears in the reading history."""
    read = {clean_isbn(isbn).upper() for isbn in previously_read}

    out: list[BookCandidate] = []
    for book in candidates:
        isbn13 = clean_isbn(book.isbn_13)
        isbn10 = clean_isbn(book.isbn_10).upper() if book.isbn_10 else None
        if isbn13 in read or (isbn10 and isbn10 in read):
            continue
        out.append(book)
    return out


def filter_disliked_authors(
    candidates: Iterable[BookCandidate], disliked_authors: Iterable[str]
) -> list[BookCandidate]:
    disliked = {_author_key(a) for a in disliked_authors}
    return [b for b in candidates if _author_key(b.author) not in disliked]
