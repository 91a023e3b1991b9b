"""
Caching utilities for expensive listing queries
Uses Redis (django-redis) when configured
"""
from django.conf import settings
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

from .conf import get_setting

logger = logging.getLogger(__name__)

CREATORS_LIST_PREFIX = "creators_list"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=120, key_prefix="creators_list")
        def get_expensive_data(platform, filters):
            return data

    `cache_ttl` may be a callable, read on every cache miss.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            ttl = cache_ttl() if callable(cache_ttl) else cache_ttl
            cache.set(cache_key, result, ttl)
            return result
        return wrapper
    return decorator


def redis_cache_enabled():
    backend = settings.CACHES.get('default', {}).get('BACKEND', '')
    return backend.startswith('django_redis')


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Note: This requires Redis with SCAN command support
    """
    if not redis_cache_enabled():
        logger.debug(f"Skipping cache invalidation for {pattern}: Redis cache not configured")
        return 0

    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")

        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
        return len(keys)
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")
        return 0


def get_cached_creators_list(filters_dict):
    """
    Get cached creators listing for a set of filters
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(CREATORS_LIST_PREFIX, **filters_dict)
    return cache.get(cache_key), cache_key


def cache_creators_list(cache_key, data, ttl=None):
    """Cache creators listing data"""
    cache.set(cache_key, data, ttl if ttl is not None else get_setting('CREATORS_CACHE_TTL'))
    logger.debug(f"Cached creators list: {cache_key}")


def invalidate_creators_cache():
    """Invalidate all creator listing cache entries"""
    invalidate_cache_pattern(CREATORS_LIST_PREFIX)
