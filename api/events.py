"""Redis subscriber that keeps the local provider cache in step with other processes."""
import asyncio
import json
import logging
import redis.asyncio as redis

from api.services.publisher import ProviderEvent
from engine.cache import ProviderCache
from shared.config import settings

logger = logging.getLogger(__name__)


def handle_event(data: dict, cache: ProviderCache):
    """Apply one provider event to the local cache."""
    event_type = data.get("type")
    if event_type in (ProviderEvent.CACHE_INVALIDATED, ProviderEvent.STATUS_UPDATE):
        cache.invalidate()


async def redis_subscriber(redis_client: redis.Redis, cache: ProviderCache):
    """Subscribe to the provider channel and invalidate the cache on updates."""
    pubsub = redis_client.pubsub()
    await pubsub.subscribe(settings.redis_provider_channel)

    try:
        async for message in pubsub.listen():
            if message["type"] == "message":
                try:
                    handle_event(json.loads(message["data"]), cache)
                except json.JSONDecodeError:
                    logger.warning(f"Ignoring malformed provider event: {message['data']!r}")
    except asyncio.CancelledError:
        pass
    finally:
        await pubsub.unsubscribe(settings.redis_provider_channel)
        await pubsub.aclose()
