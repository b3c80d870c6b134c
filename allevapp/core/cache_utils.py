"""
Caching helpers for expensive aggregate queries
Uses Redis when REDIS_URL is configured, the local memory cache otherwise
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger('allevapp.core')


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{get_generation(prefix)}:{key_hash}"


def get_generation(prefix):
    return cache.get(f"{prefix}:generation", 0)


def invalidate_prefix(prefix):
    """
    Invalidate every key built with make_cache_key(prefix, ...)

    Keys embed a generation counter, so bumping it orphans the old entries
    until their TTL expires. Works on any cache backend.
    """
    generation_key = f"{prefix}:generation"
    try:
        cache.incr(generation_key)
    except ValueError:
        cache.set(generation_key, 1, None)
    logger.debug(f"Invalidated cache prefix {prefix}")
