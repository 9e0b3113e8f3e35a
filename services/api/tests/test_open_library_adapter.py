import httpx
import pytest
from book_service.domain.errors import SourceError
from book_service.domain.types import Format
from book_service.services.availability.open_library import OpenLibraryAdapter
from book_service.services.availability.retry import RetryPolicy
from conftest import RecordingSleep

ISBN = "9780140449334"
BOOKS_HIT = {
    f"ISBN:{ISBN}": {
        "details": {"key": "/books/OL123M"},
        "preview": "noview",
        "preview_url": "https://archive.org/details/odyssey",
        "info_url": "https://openlibrary.org/books/OL123M",
    }
}


def _volumes(availability: str) -> dict:
    return {"records": {"/books/OL123M": {"data": {"ebooks": [{"availability": availability}]}}}}


def _adapter(handler, sleep=None) -> OpenLibraryAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    retry = RetryPolicy(max_retries=2, base_delay_ms=10, retry_on=(httpx.HTTPError,), sleep=sleep or RecordingSleep())
    return OpenLibraryAdapter(client, retry=retry)


@pytest.mark.asyncio
async def test_borrowable_ebook_is_free_record():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/books":
            assert request.url.params["bibkeys"] == f"ISBN:{ISBN}"
            assert request.url.params["jscmd"] == "details"
            return httpx.Response(200, json=BOOKS_HIT)
        if request.url.path == f"/api/volumes/brief/isbn/{ISBN}.json":
            return httpx.Response(200, json=_volumes("borrow_available"))
        return httpx.Response(404)

    record = await _adapter(handler).check(ISBN)

    assert record is not None
    assert record.source == "open_library"
    assert record.format == Format.ebook
    assert record.price is None
    assert record.estimated_delivery == "instant"
    assert record.in_stock
    assert record.url == "https://archive.org/details/odyssey"


@pytest.mark.asyncio
async def test_unknown_isbn_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={})

    assert await _adapter(handler).check(ISBN) is None


@pytest.mark.asyncio
async def test_not_readable_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/books":
            return httpx.Response(200, json=BOOKS_HIT)
        return httpx.Response(200, json=_volumes("restricted"))

    assert await _adapter(handler).check(ISBN) is None


@pytest.mark.asyncio
async def test_volumes_failure_falls_back_to_full_preview():
    hit = {f"ISBN:{ISBN}": {**BOOKS_HIT[f"ISBN:{ISBN}"], "preview": "full", "preview_url": None}}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/books":
            return httpx.Response(200, json=hit)
        return httpx.Response(503)

    sleep = RecordingSleep()
    record = await _adapter(handler, sleep).check(ISBN)

    assert record is not None
    assert record.url == "https://openlibrary.org/books/OL123M"
    # volumes call retried twice before giving up
    assert len(sleep.calls) == 2


@pytest.mark.asyncio
async def test_books_api_failure_raises_source_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    with pytest.raises(SourceError) as exc:
        await _adapter(handler).check(ISBN)
    assert exc.value.source == "open_library"


@pytest.mark.asyncio
async def test_search_book_and_verify_isbn():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/search.json":
            assert "title:The Odyssey" in request.url.params["q"]
            return httpx.Response(200, json={"docs": [{"isbn": ["0140449337", ISBN]}]})
        if request.url.path == "/api/books":
            return httpx.Response(200, json=BOOKS_HIT)
        return httpx.Response(404)

    adapter = _adapter(handler)
    hit = await adapter.search_book("The Odyssey", "Homer")

    assert hit.found
    assert hit.isbn_13 == ISBN
    assert hit.isbn_10 == "0140449337"
    assert await adapter.verify_isbn(ISBN) is True
