import logging

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """The cache backend (Redis in production) failed."""


def check_cache_connection():
    if not settings.CACHES:
        logger.error("CACHES setting is not configured !!")
        raise CacheError("CACHES setting is not configured")

    try:
        cache.set("health_check", "ok", 10)
        healthy = cache.get("health_check") == "ok"
    except Exception as e:
        logger.error(f"Cache connection error: {e}")
        raise CacheError(f"Cache connection error: {e}") from e

    if healthy:
        logger.debug("Cache connection established")
    else:
        logger.error("Cache connection failed !!")
    return healthy


def get_cache_key_value(key):
    try:
        value = cache.get(key)
    except Exception as e:
        logger.error(f"Cache get error for key: {key}, error: {e}")
        raise CacheError(f"Cache get error for key: {key}, error: {e}") from e
    if value is None:
        logger.debug(f"Cache miss for key: {key}")
    return value


def set_cache_key(key, value, timeout=None):
    try:
        cache.set(key, value, timeout)
    except Exception as e:
        logger.error(f"Cache set error for key: {key}, error: {e}")
        raise CacheError(f"Cache set error for key: {key}, error: {e}") from e

