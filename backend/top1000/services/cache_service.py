"""Redis cache for ranked list and statistics responses.

Both responses are expensive (a full scan of the filtered votes) and
change only when votes or profiles change, so they are cached for a
short TTL and dropped wholesale after every such write. Redis being
unavailable degrades to cache misses.
"""

from typing import Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from top1000.config import settings
from top1000.services.ranking import FilterOptions

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

RANKING_PATTERNS = ("list:*", "stats:*")

# Bumped on every invalidation and part of every ranking key, so an entry
# computed before a write can only be stored under a key nobody reads anymore
GENERATION_KEY = "rankings:generation"


class CacheService:
    """Async Redis cache service.

    All methods swallow ``RedisError`` after logging it, so callers can
    treat the cache as optional.
    """

    def __init__(self, redis_url: str, ttl: int = settings.LIST_CACHE_TTL):
        """Initialize cache service.

        Args:
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0")
            ttl: Default time-to-live in seconds
        """
        self.redis_url = redis_url
        self.ttl = ttl
        self._redis: Optional[Redis] = None
        self.logger = logger.bind(service="cache_service")

    async def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            self.logger.info("redis_connection_created", url=self.redis_url)

        return self._redis

    async def get(self, key: str) -> Optional[str]:
        """Get a value from cache, None if missing or Redis failed."""
        try:
            redis = await self._get_redis()
            value = await redis.get(key)
            self.logger.debug("cache_hit" if value else "cache_miss", key=key)
            return value

        except RedisError as e:
            self.logger.warning("cache_get_failed", key=key, error=str(e))
            return None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """Set a value with TTL. Returns False on error."""
        try:
            redis = await self._get_redis()
            await redis.set(key, value, ex=ttl or self.ttl)
            self.logger.debug("cache_set", key=key, value_length=len(value))
            return True

        except RedisError as e:
            self.logger.warning("cache_set_failed", key=key, error=str(e))
            return False

    async def incr(self, key: str) -> int:
        """Atomically increment an integer key. Returns 0 on error."""
        try:
            redis = await self._get_redis()
            return await redis.incr(key)

        except RedisError as e:
            self.logger.warning("cache_incr_failed", key=key, error=str(e))
            return 0

    async def generation(self) -> int:
        """Current ranking cache generation, 0 before the first invalidation."""
        raw = await self.get(GENERATION_KEY)
        try:
            return int(raw) if raw else 0
        except ValueError:
            return 0

    async def get_model(self, key: str, model: Type[M]) -> Optional[M]:
        """Get a cached pydantic response, None on miss or stale format."""
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return model.model_validate_json(raw)
        except ValidationError:
            self.logger.warning("cache_entry_invalid", key=key)
            return None

    async def set_model(self, key: str, value: BaseModel) -> bool:
        return await self.set(key, value.model_dump_json())

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a pattern.

        Args:
            pattern: Redis pattern (e.g., "list:*")

        Returns:
            Number of keys deleted, 0 on error
        """
        try:
            redis = await self._get_redis()

            keys = [key async for key in redis.scan_iter(match=pattern, count=100)]
            deleted = await redis.delete(*keys) if keys else 0

            self.logger.debug("cache_pattern_delete", pattern=pattern, keys_deleted=deleted)
            return deleted

        except RedisError as e:
            self.logger.warning("cache_pattern_delete_failed", pattern=pattern, error=str(e))
            return 0

    async def invalidate_rankings(self) -> int:
        """Drop every cached ranked list and statistics response.

        The generation is bumped first so that responses still being
        computed from the old data are written under retired keys.

        Returns:
            Number of cache keys deleted
        """
        generation = await self.incr(GENERATION_KEY)
        total_deleted = 0
        for pattern in RANKING_PATTERNS:
            total_deleted += await self.delete_pattern(pattern)

        self.logger.info(
            "ranking_cache_invalidated",
            generation=generation,
            keys_deleted=total_deleted,
        )
        return total_deleted

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            redis = await self._get_redis()
            await redis.ping()
            return True

        except RedisError as e:
            self.logger.error("redis_health_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close Redis connection. Called on application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("redis_connection_closed")


# Global cache instance
_cache_instance: Optional[CacheService] = None


def get_cache_service() -> CacheService:
    """Get or create the global cache service instance."""
    global _cache_instance

    if _cache_instance is None:
        _cache_instance = CacheService(settings.REDIS_URL)
        logger.info("cache_service_initialized", redis_url=settings.REDIS_URL)

    return _cache_instance


async def get_cache() -> CacheService:
    """FastAPI dependency for cache service.

    Usage:
        @router.get("/list")
        async def ranked_list(cache: CacheService = Depends(get_cache)):
            ...
    """
    return get_cache_service()


def cache_key_for_list(
    page: int,
    limit: int,
    filters: Optional[FilterOptions] = None,
    generation: int = 0,
) -> str:
    """Generate cache key for one page of the ranked list.

    Args:
        page: Page number
        limit: Games per page
        filters: Demographic filter
        generation: Ranking cache generation read before computing

    Returns:
        Cache key string
    """
    suffix = filters.cache_suffix() if filters else "all"
    return ":".join(["list", f"g{generation}", f"p{page}", f"l{limit}", suffix])


def cache_key_for_statistics(
    filters: Optional[FilterOptions] = None,
    generation: int = 0,
) -> str:
    """Generate cache key for the statistics endpoint."""
    suffix = filters.cache_suffix() if filters else "all"
    return f"stats:g{generation}:{suffix}"
