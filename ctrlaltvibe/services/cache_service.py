from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.cache_config import tags_for_event

logger = logging.getLogger(__name__)

class CacheService:

    @staticmethod
    def invalidate_for(cache: Optional[TaggedCache], event: str, featured: bool = False) -> int:
        """Drop every cached query a mutation may have made stale.

        Runs after the durable write has succeeded. Failures are logged and
        swallowed: a missed invalidation must never fail the request.
        """
        if cache is None:
            return 0
        tags = tags_for_event(event, featured=featured)
        if not tags:
            logger.warning(f"No invalidation rule for cache event {event}")
            return 0
        try:
            removed = cache.invalidate_tags(*tags)
            logger.info(f"Cache invalidation for {event}: {removed} entries across {tags}")
            return removed
        except Exception as e:
            logger.error(f"Cache invalidation failed for {event}: {e}", exc_info=True)
            return 0

    @staticmethod
    def invalidate_tag(cache: TaggedCache, tag: str) -> int:
        try:
            return cache.invalidate_tag(tag)
        except Exception as e:
            logger.error(f"Failed to invalidate cache tag {tag}: {e}", exc_info=True)
            return 0

    @staticmethod
    def get_cache_stats(cache: TaggedCache) -> Dict[str, Any]:
        stats = cache.stats()
        stats["timestamp"] = datetime.now(timezone.utc).isoformat()
        return stats

    @staticmethod
    def health_check(cache: TaggedCache) -> bool:
        test_key = "health_check_test"
        test_value = {"timestamp": datetime.now(timezone.utc).isoformat()}
        cache.set(test_key, test_value, ttl=10)
        retrieved = cache.get(test_key)
        cache.delete(test_key)
        return retrieved == test_value

cache_service = CacheService()
