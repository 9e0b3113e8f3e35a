from datetime import datetime, timezone

from book_service.domain.types import Format
from book_service.services.availability_cache import UNSET, AvailabilityCache
from conftest import FakeClock, make_record


def test_get_returns_exactly_what_was_set_including_none(cache):
    record = make_record("src_a", Format.ebook, None)
    cache.set("9780140449334", "src_a", record)
    cache.set("9780140449334", "src_b", None)

    assert cache.get("9780140449334", "src_a") == record
    assert cache.get("9780140449334", "src_b") is None
    assert cache.get("9780140449334", "src_c") is UNSET


def test_unset_is_distinct_from_none():
    assert UNSET is not None
    assert not UNSET
    assert repr(UNSET) == "UNSET"


def test_zero_ttl_expires_immediately(cache):
    cache.set("isbn", "src", make_record("src", Format.paperback, 5.0), ttl_hours=0)

    assert cache.has_entry("isbn", "src")
    assert cache.get("isbn", "src") is UNSET
    # expired entries are removed on read
    assert not cache.has_entry("isbn", "src")


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = AvailabilityCache(default_ttl_hours=1, clock=clock)
    cache.set("isbn", "src", None)

    clock.advance(3599)
    assert cache.get("isbn", "src") is None

    clock.advance(1)
    assert cache.get("isbn", "src") is UNSET


def test_set_overwrites(cache):
    cache.set("isbn", "src", make_record("src", Format.paperback, 5.0))
    cache.set("isbn", "src", None)
    assert cache.get("isbn", "src") is None
    assert len(cache) == 1


def test_invalidation(cache):
    cache.set("111", "a", None)
    cache.set("111", "b", None)
    cache.set("222", "a", None)
    # identifiers containing ':' split on the last separator
    cache.set("urn:isbn:333", "a", None)

    assert cache.invalidate("111", "a") is True
    assert cache.invalidate("111", "a") is False
    assert cache.invalidate_by_source("a") == 2
    assert cache.invalidate_by_identifier("111") == 1
    assert len(cache) == 0


def test_invalidate_by_identifier_handles_colons(cache):
    cache.set("urn:isbn:333", "a", None)
    cache.set("urn:isbn:333", "b", None)
    cache.set("333", "a", None)

    assert cache.invalidate_by_identifier("urn:isbn:333") == 2
    assert cache.has_entry("333", "a")


def test_prune_stats_and_clear(clock):
    cache = AvailabilityCache(default_ttl_hours=1, clock=clock)
    cache.set("old", "a", None, ttl_hours=0.5)
    cache.set("new", "a", None, ttl_hours=2)
    clock.advance(3600)

    stats = cache.stats()
    assert (stats.size, stats.valid, stats.expired) == (2, 1, 1)

    assert cache.prune_expired() == 1
    assert cache.stats().size == 1
    assert cache.clear() == 1
    assert len(cache) == 0


def test_entries_view(clock):
    cache = AvailabilityCache(default_ttl_hours=1, clock=clock)
    cache.set("isbn", "src", None)

    [entry] = cache.entries()
    assert entry.key == "isbn:src"
    assert entry.data is None
    assert entry.is_expired is False
    assert entry.expires_at == datetime.fromtimestamp(clock.now + 3600, tz=timezone.utc)
