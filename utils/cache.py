"""
In-memory caching
"""
import functools
import time
from typing import Any, Callable, Dict, Tuple, Optional
from collections import OrderedDict
import logging

from config.settings import settings

logger = logging.getLogger(__name__)


class SimpleCache:
    """LRU cache with a per-entry time to live"""

    def __init__(self, ttl: int = 300, max_size: int = 1000):
        self.ttl = ttl
        self.max_size = max_size
        self.cache: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        if key in self.cache:
            value, timestamp = self.cache[key]
            if time.time() - timestamp < self.ttl:
                self.cache.move_to_end(key)
                self.hits += 1
                logger.debug(f"Cache hit: {key}")
                return value
            del self.cache[key]
            logger.debug(f"Cache expired: {key}")

        self.misses += 1
        return None

    def set(self, key: str, value: Any):
        if key in self.cache:
            self.cache.move_to_end(key)
        elif len(self.cache) >= self.max_size:
            oldest_key = next(iter(self.cache))
            del self.cache[oldest_key]
            logger.debug(f"Cache evicted (LRU): {oldest_key}")

        self.cache[key] = (value, time.time())

    def delete(self, key: str):
        self.cache.pop(key, None)

    def clear(self):
        self.cache.clear()
        self.hits = 0
        self.misses = 0

    def get_stats(self) -> Dict[str, Any]:
        total = self.hits + self.misses
        hit_rate = (self.hits / total * 100) if total > 0 else 0
        return {
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': round(hit_rate, 2),
            'size': len(self.cache),
            'max_size': self.max_size
        }


_global_cache = SimpleCache(ttl=settings.cache.ttl, max_size=settings.cache.max_size)


def cache_key(func_name: str, *args, **kwargs) -> str:
    return f"{func_name}:{args!r}:{sorted(kwargs.items())!r}"


def cached(key_prefix: str = ""):
    """
    Cache results of a plain function in the global cache.

    None results are not stored, so failed lookups are retried next call.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not settings.cache.enabled:
                return func(*args, **kwargs)
            key = f"{key_prefix}:{cache_key(func.__name__, *args, **kwargs)}"
            result = _global_cache.get(key)
            if result is not None:
                return result
            result = func(*args, **kwargs)
            if result is not None:
                _global_cache.set(key, result)
            return result

        wrapper.cache_clear = clear_cache
        return wrapper
    return decorator


def async_cached(key_prefix: str = ""):
    """Coroutine version of cached"""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not settings.cache.enabled:
                return await func(*args, **kwargs)
            key = f"{key_prefix}:{cache_key(func.__name__, *args, **kwargs)}"
            result = _global_cache.get(key)
            if result is not None:
                return result
            result = await func(*args, **kwargs)
            if result is not None:
                _global_cache.set(key, result)
            return result

        wrapper.cache_clear = clear_cache
        return wrapper
    return decorator


def get_cache_stats() -> Dict[str, Any]:
    return _global_cache.get_stats()


def clear_cache():
    _global_cache.clear()
    logger.info("Cache cleared")
