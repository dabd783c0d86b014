import functools
import logging
from typing import Any, Callable, Optional

from fastapi import Request

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.cache_config import CACHE_KEY_TAGS, CACHE_TTL
from ctrlaltvibe.core.config import settings

logger = logging.getLogger(__name__)

_MISS = object()


def _mark(request: Optional[Request], status: str) -> None:
    if request is not None:
        request.state.cache_status = status


def cache_read(name: str, key_builder: Callable[..., str]):
    """Front a sync service read with the tagged cache.

    The wrapped method is called as ``method(db, cache, request=None, **params)``.
    ``key_builder(**params)`` must encode every parameter that changes the result,
    the viewer included. ``name`` selects the TTL and the tags from ``cache_config``.
    ``None`` results are cached too, so a missing featured project is not re-queried.
    """
    ttl = CACHE_TTL[name]
    tags = CACHE_KEY_TAGS[name]

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, db, cache: Optional[TaggedCache], request: Optional[Request] = None, **params) -> Any:
            if not settings.CACHE_ENABLED or cache is None:
                return func(self, db, **params)

            cache_key = key_builder(**params)
            cached_value = cache.get(cache_key, _MISS)
            if cached_value is not _MISS:
                _mark(request, "HIT")
                logger.debug(f"Cache HIT for key: {cache_key}")
                return cached_value

            result = func(self, db, **params)
            cache.set(cache_key, result, ttl=ttl, tags=tags)
            _mark(request, "MISS")
            logger.debug(f"Cache MISS for key: {cache_key} (stored with TTL {ttl}s)")
            return result

        return wrapper

    return decorator
