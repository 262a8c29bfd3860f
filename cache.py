"""
Caller-side memoization for selection resolution.

The resolvers are pure, so a hot path (every render, every selector change)
can cache their results keyed by (product id, color id, size id). The cache
lives here, outside the resolvers, and is opt-in.
"""

import functools
import logging
import os
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Mapping
from typing import Any

from identifiers import normalize_id

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


CACHE_MAX_ENTRIES = max(1, _env_int("VARIANT_CACHE_SIZE", 512))
CACHE_TTL_SECONDS = max(1, _env_int("VARIANT_CACHE_TTL_SEC", 300))

CacheKey = tuple[str, str | None, str | None]


def _product_id(product: Any) -> str | None:
    if isinstance(product, Mapping):
        return normalize_id(product.get("id") or product.get("_id"))
    return normalize_id(getattr(product, "id", None))


def selection_key(product: Any, color_id: Any = None, size_id: Any = None) -> CacheKey | None:
    """Cache key for a resolution call, or None when the product has no id."""
    product_id = _product_id(product)
    if product_id is None:
        return None
    return (product_id, normalize_id(color_id), normalize_id(size_id))


class SelectionCache:
    """LRU cache with per-entry TTL for resolved selections."""

    def __init__(
        self,
        max_entries: int = CACHE_MAX_ENTRIES,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_entries = max(1, max_entries)
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: OrderedDict[Any, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Any) -> Any | None:
        with self._lock:
            item = self._store.get(key)
            if item is None:
                self.misses += 1
                return None
            expires_at, value = item
            if expires_at <= self._clock():
                self._store.pop(key, None)
                self.misses += 1
                return None
            self._store.move_to_end(key)
            self.hits += 1
            return value

    def set(self, key: Any, value: Any) -> None:
        with self._lock:
            self._store[key] = (self._clock() + self._ttl_seconds, value)
            self._store.move_to_end(key)
            while len(self._store) > self._max_entries:
                self._store.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


def memoize_selection(
    func: Callable[..., Any] | None = None, *, cache: SelectionCache | None = None
) -> Callable[..., Any]:
    """Wrap a (product, color_id, size_id) resolver with a SelectionCache.

    Usable bare (@memoize_selection) or with a shared cache
    (@memoize_selection(cache=my_cache)). The wrapped function's cache is
    exposed as ``wrapper.cache``. Products without an id bypass the cache;
    a cached entry goes stale only if the product changes under the same id
    within the TTL. None results are not cached.
    """

    def decorate(fn: Callable[..., Any]) -> Callable[..., Any]:
        store = cache if cache is not None else SelectionCache()

        @functools.wraps(fn)
        def wrapper(product: Any, color_id: Any = None, size_id: Any = None) -> Any:
            key = selection_key(product, color_id, size_id)
            if key is None:
                return fn(product, color_id, size_id)
            key = (fn.__qualname__, *key)
            result = store.get(key)
            if result is None:
                result = fn(product, color_id, size_id)
                if result is not None:
                    store.set(key, result)
            return result

        wrapper.cache = store
        return wrapper

    if func is not None:
        return decorate(func)
    return decorate
