"""AI provider repository for CRUD and health-status operations."""
from datetime import timedelta
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from api.models.provider import HealthStatusEnum, ProviderStatusEnum
from shared.config import settings
from shared.utils import generate_provider_id, get_utc_now

AI_PROVIDERS = "ai_providers"


# Fields the admin console may edit; health fields belong to the health controller.
CONFIG_FIELDS = (
    "name", "description", "type", "provider_category", "endpoint", "apiKey",
    "model", "method", "headers", "body_template", "response_path",
    "success_condition", "timeout_ms", "priority", "enabled"
)


class ProviderRepository:
    """Repository for AI provider documents."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[AI_PROVIDERS]

    async def list_providers(self) -> List[Dict[str, Any]]:
        """All providers, highest priority (lowest number) first."""
        cursor = self.collection.find({}).sort("priority", 1)
        return await cursor.to_list(length=None)

    async def list_enabled(self) -> List[Dict[str, Any]]:
        """Enabled providers, highest priority first."""
        cursor = self.collection.find({"enabled": True}).sort("priority", 1)
        return await cursor.to_list(length=None)

    async def get_provider(self, provider_id: str) -> Optional[Dict[str, Any]]:
        """Get a provider by ID."""
        return await self.collection.find_one({"_id": provider_id})

    async def create_provider(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Create a provider from admin-supplied configuration."""
        provider = {key: config[key] for key in CONFIG_FIELDS if key in config}
        provider.update({
            "_id": generate_provider_id(),
            "status": None,
            "isHealthy": True,
            "healthStatus": HealthStatusEnum.HEALTHY.value,
            "healthScore": 100,
            "pausedUntil": None,
            "failureCount": 0,
            "lastFailureAt": None,
            "lastError": None,
            "created_at": get_utc_now()
        })
        await self.collection.insert_one(provider)
        return provider

    async def update_provider(self, provider_id: str, fields: Dict[str, Any]) -> bool:
        """Update configuration fields. Returns False if the provider is missing."""
        update = {key: value for key, value in fields.items() if key in CONFIG_FIELDS}
        update["updated_at"] = get_utc_now()
        result = await self.collection.update_one({"_id": provider_id}, {"$set": update})
        return result.matched_count > 0

    async def delete_provider(self, provider_id: str) -> bool:
        """Delete a provider. Returns False if it did not exist."""
        result = await self.collection.delete_one({"_id": provider_id})
        return result.deleted_count > 0

    async def update_status(
        self,
        provider_id: str,
        status: str,
        error: Optional[str] = None,
        latency_ms: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Persist the outcome of a connectivity test.

        Offline results bump ``failureCount``; once it reaches the failure
        threshold the provider is paused for the configured cool-down.
        ``healthScore`` is left alone.
        """
        now = get_utc_now()

        if status == ProviderStatusEnum.ONLINE.value:
            return await self.collection.find_one_and_update(
                {"_id": provider_id},
                {
                    "$set": {
                        "status": ProviderStatusEnum.ONLINE.value,
                        "isHealthy": True,
                        "lastCheckedAt": now,
                        "lastLatencyMs": latency_ms,
                        "failureCount": 0
                    }
                },
                return_document=True
            )

        provider = await self.collection.find_one_and_update(
            {"_id": provider_id},
            {
                "$set": {
                    "status": ProviderStatusEnum.OFFLINE.value,
                    "isHealthy": False,
                    "lastCheckedAt": now,
                    "lastFailureAt": now,
                    "lastError": error
                },
                "$inc": {"failureCount": 1}
            },
            return_document=True
        )
        if provider and provider.get("failureCount", 0) >= settings.provider_failure_threshold:
            paused_until = now + timedelta(minutes=settings.provider_pause_minutes)
            await self.collection.update_one(
                {"_id": provider_id},
                {"$set": {"pausedUntil": paused_until}}
            )
            provider["pausedUntil"] = paused_until
        return provider

    async def mark_recovered(self, provider_id: str, latency_ms: Optional[int] = None) -> bool:
        """Put a provider back into rotation after a successful re-test."""
        result = await self.collection.update_one(
            {"_id": provider_id},
            {
                "$set": {
                    "status": ProviderStatusEnum.ONLINE.value,
                    "isHealthy": True,
                    "healthStatus": HealthStatusEnum.HEALTHY.value,
                    "healthScore": 100,
                    "pausedUntil": None,
                    "failureCount": 0,
                    "lastError": None,
                    "lastCheckedAt": get_utc_now(),
                    "lastLatencyMs": latency_ms
                }
            }
        )
        return result.modified_count > 0
