"""
Caching Utilities
=================
Tag-aware read-through cache shared by every public read.

Features:
- In-memory store with TTL (Time To Live) and LRU eviction
- Tag invalidation by sequence number (lazy: entries are dropped on their next lookup)
- Single-flight computation per key so concurrent misses hit the database once
- Falls back to direct computation when the store itself fails

Usage:
    from moviedb.utils.cache import cache, cached

    movies = cached("movies-for-site", {"movies-list", "movies-all"}, lambda: load_movies(db))

    @cache("search-movies", tags={"movies-list", "movies-all"})
    def search_movies_by_title(db, title):
        ...

    search_movies_by_title(db, "alien")             # key: "search-movies-alien"
    search_movies_by_title(db, "alien", store=store)  # explicit store
"""
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Protocol, Tuple, TypeVar, Union
import inspect
import logging
import os
import threading
import time

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "900"))
CACHE_MAX_SIZE = int(os.getenv("CACHE_MAX_SIZE", "1000"))
# Entries outlive an invalidation by at most their TTL plus the time spent computing them
TAG_RETENTION_SECONDS = int(os.getenv("CACHE_TAG_RETENTION_SECONDS", str(2 * CACHE_TTL_SECONDS)))

T = TypeVar("T")
TagSpec = Union[Iterable[str], Callable[..., Iterable[str]]]


class _Missing:
    """Marker returned by ``get`` on a miss (``None`` is a cacheable value)."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class CacheBackend(Protocol):
    """Operations the cache wrapper, the dispatcher and the admin routes rely on."""

    def get(self, key: str) -> Any:
        ...

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
        since: Optional[int] = None,
    ) -> None:
        ...

    def sequence(self) -> int:
        ...

    def invalidate_tags(self, tags: Iterable[str]) -> None:
        ...

    def clear(self) -> None:
        ...

    def purge_expired(self) -> int:
        ...

    def get_stats(self) -> dict:
        ...


@dataclass
class CacheEntry:
    value: Any
    created_at: float
    ttl: Optional[int]
    tags: FrozenSet[str]
    since: int

    def is_expired(self, now: float) -> bool:
        return self.ttl is not None and now >= self.created_at + self.ttl


class CacheStore:
    """
    In-memory cache with TTL, tags and LRU eviction.

    Invalidations are numbered by one store-wide sequence. Each tag remembers
    the sequence number and time of its last invalidation; an entry remembers
    the sequence number at which its value started being computed. An entry
    is stale once any of its tags was invalidated after that point. All
    operations run under one re-entrant lock, which makes an invalidation
    atomic with respect to concurrent lookups.

    Tags not invalidated for longer than ``tag_retention`` seconds are
    forgotten on purge. Forgetting raises a floor below which every entry
    counts as stale, so a forgotten invalidation can never revive an entry.
    """

    def __init__(
        self,
        max_size: int = CACHE_MAX_SIZE,
        clock: Callable[[], float] = time.time,
        tag_retention: float = TAG_RETENTION_SECONDS,
    ):
        """
        Initialize cache store.

        Args:
            max_size: Maximum number of items in cache (LRU eviction)
            clock: Time source in seconds, replaceable in tests
            tag_retention: Seconds a tag's last invalidation is remembered
        """
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._tags: Dict[str, Tuple[int, float]] = {}  # tag -> (sequence, invalidated_at)
        self._sequence = 0
        self._floor = 0
        self._max_size = max_size
        self._clock = clock
        self._tag_retention = tag_retention
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._invalidations = 0

    def _is_stale(self, entry: CacheEntry) -> bool:
        if entry.since < self._floor:
            return True
        return any(self._tags.get(tag, (0, 0.0))[0] > entry.since for tag in entry.tags)

    def _is_live(self, entry: CacheEntry) -> bool:
        return not entry.is_expired(self._clock()) and not self._is_stale(entry)

    def get(self, key: str) -> Any:
        """
        Get value from cache if present, not expired and not invalidated.

        Returns:
            Cached value (possibly None) or MISSING
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return MISSING

            if not self._is_live(entry):
                del self._cache[key]
                self._misses += 1
                return MISSING

            # Move to end (LRU)
            self._cache.move_to_end(key)
            self._hits += 1
            return entry.value

    def sequence(self) -> int:
        """Number of the latest invalidation; taken before computing a value."""
        with self._lock:
            return self._sequence

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
        since: Optional[int] = None,
    ) -> None:
        """
        Store a value under key.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (None = no expiration)
            tags: Invalidation tags attached to the entry
            since: sequence() observed before the value was computed;
                defaults to the current sequence
        """
        with self._lock:
            self._cache[key] = CacheEntry(
                value=value,
                created_at=self._clock(),
                ttl=ttl,
                tags=frozenset(tags),
                since=self._sequence if since is None else since,
            )
            self._cache.move_to_end(key)

            # Evict oldest if over max_size (LRU)
            while len(self._cache) > self._max_size:
                oldest_key, _ = self._cache.popitem(last=False)
                logger.debug(f"Evicted cache key: {oldest_key}")

    def invalidate_tag(self, tag: str) -> None:
        """Record an invalidation of tag; entries carrying it become misses."""
        with self._lock:
            self._sequence += 1
            self._tags[tag] = (self._sequence, self._clock())
            self._invalidations += 1
        logger.debug(f"Invalidated cache tag: {tag}")

    def invalidate_tags(self, tags: Iterable[str]) -> None:
        with self._lock:
            for tag in sorted(set(tags)):
                self.invalidate_tag(tag)

    def clear(self) -> None:
        """
        Drop every entry and every remembered tag.

        The floor moves to the current sequence, so a computation that
        started before the clear stores an entry that is already stale.
        """
        with self._lock:
            self._cache.clear()
            self._tags.clear()
            self._floor = self._sequence
            self._hits = 0
            self._misses = 0
        logger.info("Cache cleared")

    def purge_expired(self) -> int:
        """
        Remove expired and invalidated entries, and forget old tags.

        Returns:
            Number of entries removed
        """
        with self._lock:
            dead = [key for key, entry in self._cache.items() if not self._is_live(entry)]
            for key in dead:
                del self._cache[key]

            cutoff = self._clock() - self._tag_retention
            old_tags = [tag for tag, (_, at) in self._tags.items() if at < cutoff]
            for tag in old_tags:
                self._floor = max(self._floor, self._tags.pop(tag)[0])

        if dead or old_tags:
            logger.debug(f"Purged {len(dead)} dead cache entries, forgot {len(old_tags)} tags")
        return len(dead)

    def get_stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache stats
        """
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

            return {
                'size': len(self._cache),
                'max_size': self._max_size,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': f"{hit_rate:.2f}%",
                'tags_tracked': len(self._tags),
                'invalidations': self._invalidations,
            }


class KeyLocks:
    """Reference-counted per-key locks for single-flight computation."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, list] = {}  # key -> [lock, holders]

    @contextmanager
    def acquire(self, key: str):
        with self._guard:
            slot = self._locks.get(key)
            if slot is None:
                slot = [threading.Lock(), 0]
                self._locks[key] = slot
            slot[1] += 1
        try:
            with slot[0]:
                yield
        finally:
            with self._guard:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Global cache instance and in-flight registry
_cache_store: CacheBackend = CacheStore()
_in_flight = KeyLocks()


def get_cache_store() -> CacheBackend:
    """FastAPI dependency returning the process-wide cache store."""
    return _cache_store


def set_cache_store(store: CacheBackend) -> CacheBackend:
    """Replace the process-wide store. Returns the previous one."""
    global _cache_store
    previous, _cache_store = _cache_store, store
    return previous


def make_key(name: str, *args: Any) -> str:
    """Build a cache key of the form "<name>-<arg1>-<arg2>-..."."""
    return "-".join([name, *(str(arg) for arg in args)])


def cached(
    key: str,
    tags: Iterable[str],
    compute: Callable[[], T],
    ttl: Optional[int] = CACHE_TTL_SECONDS,
    store: Optional[CacheBackend] = None,
) -> T:
    """
    Return the live cached value for key, or compute, store and return it.

    Concurrent callers missing on the same key wait for a single computation.
    The store sequence is captured before computing, so an invalidation that
    lands while compute() runs leaves the stored entry already stale.

    If the store raises, the read is served by compute() directly.
    """
    store = store if store is not None else get_cache_store()
    tag_set = frozenset(tags)

    try:
        value = store.get(key)
    except Exception as e:
        logger.warning(f"Cache unavailable for {key}, running direct query: {str(e)}")
        return compute()

    if value is not MISSING:
        logger.debug(f"Cache hit for {key}")
        return value

    with _in_flight.acquire(key):
        try:
            # Another caller may have filled the entry while we waited
            value = store.get(key)
            if value is not MISSING:
                logger.debug(f"Cache hit for {key} after wait")
                return value
            since = store.sequence()
        except Exception as e:
            logger.warning(f"Cache unavailable for {key}, running direct query: {str(e)}")
            return compute()

        logger.debug(f"Cache miss for {key}")
        result = compute()

        try:
            store.set(key, result, ttl=ttl, tags=tag_set, since=since)
        except Exception as e:
            logger.warning(f"Failed to store cache entry {key}: {str(e)}")

        return result


def cache(name: str, tags: TagSpec, ttl: Optional[int] = CACHE_TTL_SECONDS):
    """
    Decorator caching a fetcher of the form ``func(db, *args)``.

    The key is ``make_key(name, *args)`` over every argument after the
    session, defaults filled in, so ``f(db, 5)`` and ``f(db, 5, None)`` share
    an entry when ``None`` is the default. ``tags`` is either a fixed
    collection or a callable receiving the same arguments.

    Usage:
        @cache("search-actors", tags=lambda name: {"actors-list", "actors-all"})
        def search_actors_by_name(db, name):
            ...

    The wrapped function accepts an optional ``store`` keyword argument.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(db, *args, store: Optional[CacheBackend] = None, **kwargs):
            bound = signature.bind(db, *args, **kwargs)
            bound.apply_defaults()
            key_args = list(bound.arguments.values())[1:]

            read_tags = tags(*key_args) if callable(tags) else tags
            return cached(
                make_key(name, *key_args),
                read_tags,
                lambda: func(*bound.args, **bound.kwargs),
                ttl=ttl,
                store=store,
            )

        return wrapper

    return decorator
