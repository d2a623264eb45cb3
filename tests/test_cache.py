import pytest

from adpulse.core.fetch.cache import TTLCache

from conftest import FakeClock


def test_get_returns_live_rows() -> None:
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("k", [{"a": 1}])

    assert cache.get("k") == [{"a": 1}]
    assert "k" in cache
    assert cache.hits == 1


def test_entry_expires_lazily() -> None:
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("k", [{"a": 1}])

    clock.advance(10)

    assert cache.get("k") is None
    assert "k" not in cache
    # Expired entries stay until overwritten
    assert len(cache) == 1
    assert cache.peek("k") is not None
    assert cache.misses == 1


def test_set_overwrites_and_renews() -> None:
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("k", [{"a": 1}])
    clock.advance(15)
    cache.set("k", [{"a": 2}])

    assert cache.get("k") == [{"a": 2}]


def test_returned_list_is_a_copy() -> None:
    cache = TTLCache(ttl_seconds=10, clock=FakeClock())
    cache.set("k", [{"a": 1}])

    rows = cache.get("k")
    rows.clear()

    assert cache.get("k") == [{"a": 1}]


def test_zero_ttl_never_serves() -> None:
    cache = TTLCache(ttl_seconds=0, clock=FakeClock())
    cache.set("k", [])

    assert cache.get("k") is None


def test_negative_ttl_rejected() -> None:
    with pytest.raises(ValueError):
        TTLCache(ttl_seconds=-1)
