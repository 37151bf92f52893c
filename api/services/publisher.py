"""Publisher service for provider events on the Redis channel."""
import json
import logging
from typing import Optional
import redis.asyncio as redis
from redis.exceptions import RedisError
from shared.config import settings
from shared.utils import get_utc_now

logger = logging.getLogger(__name__)


class ProviderEvent:
    """Event type constants."""
    STATUS_UPDATE = "provider_status"
    CACHE_INVALIDATED = "cache_invalidated"


class ProviderEventPublisher:
    """Publishes provider status changes and cache invalidations to other processes."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client
        self.channel = settings.redis_provider_channel

    async def _publish(self, event: dict) -> bool:
        try:
            await self.redis.publish(self.channel, json.dumps(event))
            return True
        except RedisError as e:
            logger.warning(f"Failed to publish {event['type']} event: {e}")
            return False

    async def publish_status_update(
        self,
        provider_id: str,
        status: str,
        latency_ms: Optional[int] = None,
        error: Optional[str] = None
    ) -> bool:
        """Announce the outcome of a provider test."""
        return await self._publish({
            "type": ProviderEvent.STATUS_UPDATE,
            "provider_id": provider_id,
            "status": status,
            "latency_ms": latency_ms,
            "error": error,
            "timestamp": get_utc_now().isoformat()
        })

    async def publish_cache_invalidation(self) -> bool:
        """Tell every process to drop its provider snapshot."""
        return await self._publish({
            "type": ProviderEvent.CACHE_INVALIDATED,
            "timestamp": get_utc_now().isoformat()
        })
