from __future__ import annotations

from urllib.parse import urlencode

from django.conf import settings
from django.core.cache import cache
from django.http import QueryDict

FEATURED_VERSION_KEY = "listings:featured:version"
FEATURED_CACHE_PREFIX = "listings:featured"


def _get_featured_version() -> int:
    version = cache.get(FEATURED_VERSION_KEY)
    if version is None:
        cache.add(FEATURED_VERSION_KEY, 1)
        return 1
    try:
        return int(version)
    except (TypeError, ValueError):
        return 1


def _bump_featured_version() -> None:
    try:
        cache.incr(FEATURED_VERSION_KEY)
    except ValueError:
        cache.set(FEATURED_VERSION_KEY, _get_featured_version() + 1, timeout=None)


def normalize_query_params(params: QueryDict) -> str:
    items: list[tuple[str, str]] = []
    for key in sorted(params.keys()):
        for value in params.getlist(key):
            items.append((key, value))
    return urlencode(items)


def featured_cache_key(params: QueryDict) -> str:
    normalized = normalize_query_params(params)
    return f"{FEATURED_CACHE_PREFIX}:v{_get_featured_version()}:{normalized or 'all'}"


def invalidate_featured_cache() -> None:
    _bump_featured_version()


def featured_cache_timeout() -> int:
    return getattr(settings, "FEATURED_CACHE_TTL", 600)
