import threading
import time

import pytest

from moviedb.utils import cache as cache_module
from moviedb.utils.cache import MISSING, CacheStore, cache, cached, make_key


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class Counter:
    """compute() stand-in that records how often it ran"""

    def __init__(self, value="value"):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return CacheStore(max_size=100, clock=clock)


def test_live_entry_is_served_without_recomputing(store):
    compute = Counter([1, 2, 3])

    first = cached("movies-for-site", {"movies-list"}, compute, store=store)
    second = cached("movies-for-site", {"movies-list"}, compute, store=store)

    assert first == second == [1, 2, 3]
    assert compute.calls == 1


def test_none_results_are_cached(store):
    compute = Counter(None)

    assert cached("movie-slug-missing", {"movies-list"}, compute, store=store) is None
    assert cached("movie-slug-missing", {"movies-list"}, compute, store=store) is None
    assert compute.calls == 1


def test_entry_expires_after_ttl(store, clock):
    compute = Counter()

    cached("k", {"t"}, compute, ttl=900, store=store)
    clock.advance(899)
    cached("k", {"t"}, compute, ttl=900, store=store)
    assert compute.calls == 1

    clock.advance(1)
    cached("k", {"t"}, compute, ttl=900, store=store)
    assert compute.calls == 2


def test_invalidating_a_tag_forces_recompute(store):
    compute = Counter()
    cached("k", {"movies-list", "movies-all"}, compute, store=store)

    store.invalidate_tag("movies-all")

    assert store.get("k") is MISSING
    cached("k", {"movies-list", "movies-all"}, compute, store=store)
    assert compute.calls == 2


def test_unrelated_tag_keeps_entry(store):
    compute = Counter()
    cached("k", {"movies-list"}, compute, store=store)

    store.invalidate_tags({"actors-list", "actor-7"})

    cached("k", {"movies-list"}, compute, store=store)
    assert compute.calls == 1


def test_invalidating_twice_behaves_like_once(store):
    compute = Counter()
    cached("k", {"t"}, compute, store=store)

    store.invalidate_tag("t")
    store.invalidate_tag("t")

    cached("k", {"t"}, compute, store=store)
    cached("k", {"t"}, compute, store=store)
    assert compute.calls == 2


def test_invalidation_during_compute_leaves_entry_stale(store):
    calls = []

    def compute():
        calls.append(1)
        if len(calls) == 1:
            # A mutation commits while the first read is still running
            store.invalidate_tag("movie-5")
            return "old"
        return "new"

    assert cached("movie-data-5", {"movie-5"}, compute, store=store) == "old"
    assert cached("movie-data-5", {"movie-5"}, compute, store=store) == "new"
    assert len(calls) == 2


def test_concurrent_misses_compute_once():
    store = CacheStore()
    lock = threading.Lock()
    calls = []
    results = []
    start = threading.Barrier(8)

    def compute():
        with lock:
            calls.append(1)
        time.sleep(0.05)
        return "shared"

    def reader():
        start.wait()
        results.append(cached("hot-key", {"movies-list"}, compute, store=store))

    threads = [threading.Thread(target=reader) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
    assert results == ["shared"] * 8
    assert len(cache_module._in_flight) == 0


class BrokenStore:
    def get(self, key):
        raise ConnectionError("store down")

    def set(self, key, value, ttl=None, tags=(), since=None):
        raise ConnectionError("store down")

    def sequence(self):
        raise ConnectionError("store down")

    def invalidate_tags(self, tags):
        raise ConnectionError("store down")


class WriteOnlyBrokenStore(CacheStore):
    def set(self, key, value, ttl=None, tags=(), since=None):
        raise ConnectionError("store down")


def test_unavailable_store_falls_back_to_direct_query():
    compute = Counter("rows")

    assert cached("k", {"t"}, compute, store=BrokenStore()) == "rows"
    assert cached("k", {"t"}, compute, store=BrokenStore()) == "rows"
    assert compute.calls == 2


def test_failed_write_still_returns_result():
    compute = Counter("rows")

    assert cached("k", {"t"}, compute, store=WriteOnlyBrokenStore()) == "rows"


def test_least_recently_used_entry_is_evicted(clock):
    store = CacheStore(max_size=2, clock=clock)
    store.set("a", 1, ttl=900)
    store.set("b", 2, ttl=900)
    store.get("a")

    store.set("c", 3, ttl=900)

    assert store.get("a") == 1
    assert store.get("b") is MISSING
    assert store.get("c") == 3


def test_purge_removes_expired_and_invalidated_entries(store, clock):
    store.set("expired", 1, ttl=10, tags={"a"})
    store.set("stale", 2, ttl=900, tags={"b"})
    store.set("live", 3, ttl=900, tags={"c"})

    clock.advance(11)
    store.invalidate_tag("b")

    assert store.purge_expired() == 2
    assert store.get_stats()["size"] == 1
    assert store.get("live") == 3


def test_clear_drops_entries_and_keeps_invalidations(store):
    since = store.sequence()
    store.invalidate_tag("t")
    store.clear()

    # A value computed before the invalidation must not become live
    store.set("k", "old", ttl=900, tags={"t"}, since=since)

    assert store.get("k") is MISSING
    assert store.get_stats()["invalidations"] == 1
    assert store.get_stats()["tags_tracked"] == 0


def test_stats_count_hits_and_misses(store):
    cached("k", {"t"}, Counter(), store=store)
    cached("k", {"t"}, Counter(), store=store)

    stats = store.get_stats()
    assert stats["hits"] == 1
    # first lookup plus the re-check under the key lock
    assert stats["misses"] == 2
    assert stats["tags_tracked"] == 0


def test_make_key_joins_arguments():
    assert make_key("movies-by-rating", 1, 10, None, 42) == "movies-by-rating-1-10-None-42"
    assert make_key("movies-for-site") == "movies-for-site"


def test_cache_decorator_keys_on_arguments_after_session(store):
    seen = []

    @cache("search-actors", tags=lambda name: {"actors-list", f"search-{name}"})
    def search(db, name):
        seen.append((db, name))
        return [name.upper()]

    assert search("session-1", "tom", store=store) == ["TOM"]
    assert search("session-2", "tom", store=store) == ["TOM"]
    assert seen == [("session-1", "tom")]
    assert store.get("search-actors-tom") == ["TOM"]

    store.invalidate_tag("search-tom")
    search("session-3", "tom", store=store)
    assert len(seen) == 2


def test_cache_decorator_uses_process_store_by_default(store):
    previous = cache_module.set_cache_store(store)
    try:
        @cache("actors-for-site", tags={"actors-list"})
        def load(db):
            return ["actor"]

        load(None)
        assert store.get("actors-for-site") == ["actor"]
    finally:
        cache_module.set_cache_store(previous)


def test_cache_decorator_fills_in_default_arguments(store):
    calls = []

    @cache("movie-data", tags=lambda movie_id, user_id=None: {f"movie-{movie_id}"})
    def load(db, movie_id, user_id=None):
        calls.append(user_id)
        return {"id": movie_id}

    load(None, 5, store=store)
    load(None, 5, None, store=store)
    load(None, 5, user_id=None, store=store)

    assert calls == [None]
    assert store.get("movie-data-5-None") == {"id": 5}


# ==================== TAG RETENTION ====================

def test_purge_forgets_tags_after_retention(clock):
    store = CacheStore(clock=clock, tag_retention=1800)
    for rating_id in range(50):
        store.invalidate_tags({f"rating-{rating_id}", f"rating-{rating_id}-movies"})
    assert store.get_stats()["tags_tracked"] == 100

    clock.advance(1799)
    store.purge_expired()
    assert store.get_stats()["tags_tracked"] == 100

    clock.advance(2)
    store.purge_expired()
    assert store.get_stats()["tags_tracked"] == 0


def test_recent_tags_survive_purge(clock):
    store = CacheStore(clock=clock, tag_retention=1800)
    store.invalidate_tag("movie-1")
    clock.advance(1000)
    store.invalidate_tag("movie-2")
    clock.advance(1000)

    store.purge_expired()

    assert store.get_stats()["tags_tracked"] == 1


def test_forgotten_invalidation_does_not_revive_older_entry(clock):
    store = CacheStore(clock=clock, tag_retention=1800)
    since = store.sequence()
    store.invalidate_tag("movie-5")
    clock.advance(3600)
    store.purge_expired()
    assert store.get_stats()["tags_tracked"] == 0

    # A computation that started before the invalidation finishes late
    store.set("movie-data-5", "old", ttl=None, tags={"movie-5"}, since=since)

    assert store.get("movie-data-5") is MISSING


def test_entries_written_after_forgetting_stay_live(clock):
    store = CacheStore(clock=clock, tag_retention=1800)
    store.invalidate_tag("movie-5")
    clock.advance(3600)
    store.purge_expired()

    cached("movie-data-5", {"movie-5"}, Counter("fresh"), store=store)

    assert store.get("movie-data-5") == "fresh"
