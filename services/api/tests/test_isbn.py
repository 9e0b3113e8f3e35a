import random

import pytest
from book_service.domain.errors import InvalidISBNError
from book_service.domain.isbn import (
    clean_isbn,
    isbn10_to_13,
    require_isbn13,
    validate_isbn,
    validate_isbn10,
    validate_isbn13,
)


def _weighted_check(first12: str) -> int:
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(first12))
    return (10 - total % 10) % 10


def test_clean_isbn_strips_hyphens_and_whitespace():
    assert clean_isbn(" 978-0-14-044933-4 ") == "9780140449334"
    assert clean_isbn("0 547 92822 X") == "054792822X"


def test_isbn13_checksum_matches_weighted_sum():
    rng = random.Random(1234)
    for _ in range(500):
        digits = "".join(rng.choice("0123456789") for _ in range(13))
        expected = _weighted_check(digits[:12]) == int(digits[12])
        assert validate_isbn13(digits) is expected


def test_isbn13_rejects_non_digits_and_wrong_length():
    assert not validate_isbn13("978014044933")
    assert not validate_isbn13("978014044933X")
    assert validate_isbn13("978-0-14-044933-4")


def test_isbn10_accepts_x_check_digit():
    assert validate_isbn10("054792822X")
    assert validate_isbn10("054792822x")
    assert not validate_isbn10("0547928221")


def test_isbn10_to_13_produces_valid_isbn13():
    for isbn10 in ("0140449337", "054792822X", "0306406152"):
        converted = isbn10_to_13(isbn10)
        assert converted is not None
        assert converted.startswith("978")
        assert validate_isbn13(converted)

    assert isbn10_to_13("0547928228") is None


def test_validate_isbn_dispatches_on_length():
    ok13 = validate_isbn("978-0-14-044933-4")
    assert ok13.valid
    assert ok13.isbn_13 == "9780140449334"
    assert ok13.isbn_10 is None

    ok10 = validate_isbn("054792822x")
    assert ok10.valid
    assert ok10.isbn_10 == "054792822X"
    assert ok10.isbn_13 == "9780547928227"


def test_validate_isbn_errors():
    bad13 = validate_isbn("9780140449335")
    assert not bad13.valid
    assert bad13.isbn_13 is None
    assert bad13.error == "Invalid ISBN-13 check digit"

    bad10 = validate_isbn("0547928228")
    assert bad10.error == "Invalid ISBN-10 check digit"

    short = validate_isbn("12345")
    assert short.error == "Invalid ISBN length: 5 (expected 10 or 13)"


def test_require_isbn13():
    assert require_isbn13("054792822X") == "9780547928227"
    with pytest.raises(InvalidISBNError) as exc:
        require_isbn13("123")
    assert "Invalid ISBN length" in exc.value.reason
