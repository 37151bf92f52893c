"""AI usage log repository."""
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from shared.utils import get_utc_now


class UsageLogRepository:
    """Append-only log of provider calls made by the generation gateway."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.ai_usage_logs

    async def log_usage(
        self,
        provider_id: str,
        provider_name: str,
        model: str,
        estimated_prompt_tokens: int,
        latency_ms: int,
        success: bool,
        feature: str,
        error_message: Optional[str] = None
    ) -> Dict[str, Any]:
        """Record one provider call."""
        entry = {
            "providerId": provider_id,
            "providerName": provider_name,
            "model": model,
            "estimatedPromptTokens": estimated_prompt_tokens,
            "latencyMs": latency_ms,
            "success": success,
            "errorMessage": error_message,
            "feature": feature,
            "timestamp": get_utc_now()
        }
        await self.collection.insert_one(entry)
        return entry

    async def recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Most recent log entries first."""
        cursor = self.collection.find({}).sort("timestamp", -1).limit(limit)
        return await cursor.to_list(length=limit)
