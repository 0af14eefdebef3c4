"""Fixed-window counters kept in the Django cache."""

from django.core.cache import cache


EMAIL_LIMIT_CACHE_KEY = 'email_limit'
WINDOW_SECONDS = 3600


def hit(key, window=WINDOW_SECONDS):
    """Count one attempt under ``key`` and return the count in this window."""
    if cache.add(key, 1, window):
        return 1
    try:
        return cache.incr(key)
    except ValueError:
        # expired between add and incr
        cache.set(key, 1, window)
        return 1


def reset(key):
    cache.delete(key)
