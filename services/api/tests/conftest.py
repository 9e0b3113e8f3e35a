from __future__ import annotations

import pytest
from book_service.api import deps
from book_service.core.config import settings as base_settings
from book_service.domain.errors import SourceError
from book_service.domain.types import AvailabilityRecord, BookCandidate, Format, RateLimit
from book_service.main import app
from book_service.services.availability.registry import AdapterRegistry
from book_service.services.availability_cache import AvailabilityCache
from book_service.services.profile_store import ProfileStore
from fastapi.testclient import TestClient


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep stand-in that records delays and advances an optional clock."""

    def __init__(self, clock: FakeClock | None = None):
        self.clock = clock
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)


class FakeAdapter:
    def __init__(
        self,
        name: str,
        formats: set[Format],
        results: dict[str, AvailabilityRecord | None | Exception] | None = None,
    ):
        self.name = name
        self.rate_limit = RateLimit(requests_per_minute=60)
        self.formats = formats
        self.results = results or {}
        self.calls: list[str] = []

    def supports_format(self, format: Format) -> bool:
        return format in self.formats

    async def check(self, isbn: str) -> AvailabilityRecord | None:
        self.calls.append(isbn)
        result = self.results.get(isbn)
        if isinstance(result, Exception):
            raise result
        return result


class FailingAdapter(FakeAdapter):
    async def check(self, isbn: str) -> AvailabilityRecord | None:
        self.calls.append(isbn)
        raise SourceError(self.name, "connection refused")


class FakeGenerator:
    def __init__(self, candidates: list[BookCandidate] | None = None):
        self.candidates = candidates or []
        self.calls: list[tuple] = []

    async def generate(self, profile, candidate_count):
        self.calls.append((profile, candidate_count))
        return list(self.candidates)


def make_record(source: str, format: Format, price: float | None, in_stock: bool = True):
    return AvailabilityRecord(
        source=source,
        format=format,
        price=price,
        url=f"https://{source}.example/book",
        estimated_delivery="instant" if format == Format.ebook else "3-5 days",
        in_stock=in_stock,
    )


def make_candidate(title: str, isbn_13: str, author: str = "Some Author", isbn_10=None):
    return BookCandidate(
        title=title,
        author=author,
        isbn_13=isbn_13,
        isbn_10=isbn_10,
        publication_year=2001,
        reasoning="test",
    )


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def cfg():
    return base_settings.model_copy(
        update={
            "enabled_sources": ["src_a", "src_b"],
            "candidate_count": 20,
            "max_results": 10,
            "price_ceiling_default": 20.0,
            "formats_default": [Format.ebook, Format.paperback],
            "cache_ttl_hours": 48,
            "openai_api_key": None,
        }
    )


@pytest.fixture()
def cache(clock):
    return AvailabilityCache(default_ttl_hours=48, clock=clock)


@pytest.fixture()
def store(tmp_path, cfg):
    return ProfileStore(tmp_path / "profiles", cfg=cfg)


@pytest.fixture()
def client(cfg, cache, store):
    registry = AdapterRegistry(
        [
            FakeAdapter(
                "src_a",
                {Format.ebook},
                {"9780140449334": make_record("src_a", Format.ebook, None)},
            ),
            FakeAdapter(
                "src_b",
                {Format.paperback},
                {"9780140449334": make_record("src_b", Format.paperback, 9.99)},
            ),
        ]
    )
    generator = FakeGenerator(
        [
            make_candidate("The Odyssey", "9780140449334", author="Homer"),
            make_candidate("The Hobbit", "9780547928227", author="J.R.R. Tolkien"),
        ]
    )

    app.dependency_overrides[deps.get_settings] = lambda: cfg
    app.dependency_overrides[deps.get_cache] = lambda: cache
    app.dependency_overrides[deps.get_registry] = lambda: registry
    app.dependency_overrides[deps.get_profile_store] = lambda: store
    app.dependency_overrides[deps.get_generator] = lambda: generator
    with TestClient(app) as c:
        c.registry = registry
        c.generator = generator
        yield c
    app.dependency_overrides.clear()
