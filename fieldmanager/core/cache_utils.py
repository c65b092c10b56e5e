"""
Caching utilities for list and report endpoints

Each cached namespace carries a version number that is part of every key.
Bumping the version makes all keys of the namespace unreachable, which works
on any cache backend; on Redis the stale keys are also deleted.
"""
from django.conf import settings
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger('fieldmanager.core.cache')

# Cache TTLs (in seconds)
VEHICLES_LIST_CACHE_TTL = 300  # 5 minutes
EXPENSE_CATEGORIES_CACHE_TTL = 900  # 15 minutes
TUTORIALS_CACHE_TTL = 900  # 15 minutes
POPUPS_CACHE_TTL = 120  # 2 minutes
REPORTS_CACHE_TTL = 600  # 10 minutes

# Namespaces
VEHICLES_NAMESPACE = 'vehicles_list'
EXPENSE_CATEGORIES_NAMESPACE = 'expense_categories'
TUTORIALS_NAMESPACE = 'tutorials'
POPUPS_NAMESPACE = 'popups'
REPORTS_NAMESPACE = 'reports'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def _version_key(namespace):
    return f"{namespace}:version"


def get_namespace_version(namespace):
    version = cache.get(_version_key(namespace))
    if version is None:
        version = 1
        cache.add(_version_key(namespace), version, None)
    return version


def make_namespaced_key(namespace, *args, **kwargs):
    """Cache key inside a namespace, tied to the namespace's current version"""
    version = get_namespace_version(namespace)
    return make_cache_key(f"{namespace}:v{version}", *args, **kwargs)


def uses_redis():
    return settings.CACHES['default']['BACKEND'].startswith('django_redis')


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Note: This requires Redis with SCAN command support
    """
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
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_namespace(namespace):
    """Make every cached entry of a namespace stale"""
    old_version = get_namespace_version(namespace)
    try:
        cache.incr(_version_key(namespace))
    except ValueError:
        # Key evicted between read and increment
        cache.set(_version_key(namespace), old_version + 1, None)
    if uses_redis():
        invalidate_cache_pattern(f"{namespace}:v{old_version}:")
    logger.debug(f"Invalidated cache namespace {namespace} (was v{old_version})")


def cached_query(cache_ttl=60, namespace="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=600, namespace=REPORTS_NAMESPACE)
        def build_report(organization_id, time_range):
            # expensive query here
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_namespaced_key(namespace, func.__name__, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {namespace}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {namespace}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator
