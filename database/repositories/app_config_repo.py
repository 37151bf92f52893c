"""Single-document app configuration stored across a few collections."""
from typing import Optional, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from shared.utils import get_utc_now

ADS_COLLECTION, ADS_DOC = "system_ads", "config"
RSS_COLLECTION, RSS_DOC = "system_stats", "rss_settings"
VERSION_COLLECTION, VERSION_DOC = "app_config", "version"


class AppConfigRepository:
    """Reads and writes the ads, RSS schedule and app version documents."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def _get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = await self.db[collection].find_one({"_id": doc_id})
        if doc is not None:
            doc.pop("_id", None)
        return doc

    async def get_ads(self) -> Optional[Dict[str, Any]]:
        return await self._get(ADS_COLLECTION, ADS_DOC)

    async def save_ads(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the ad config; ``last_updated`` is always stamped here."""
        doc = {**config, "_id": ADS_DOC, "last_updated": get_utc_now()}
        await self.db[ADS_COLLECTION].replace_one({"_id": ADS_DOC}, doc, upsert=True)
        doc.pop("_id")
        return doc

    async def get_rss_settings(self) -> Optional[Dict[str, Any]]:
        return await self._get(RSS_COLLECTION, RSS_DOC)

    async def update_rss_schedule(self, update_interval_minutes: int, start_time: str):
        """Merge the schedule into the settings document, keeping its counters."""
        await self.db[RSS_COLLECTION].update_one(
            {"_id": RSS_DOC},
            {
                "$set": {
                    "update_interval_minutes": update_interval_minutes,
                    "start_time": start_time,
                    "updated_at": get_utc_now()
                }
            },
            upsert=True
        )

    async def get_version(self) -> Optional[Dict[str, Any]]:
        return await self._get(VERSION_COLLECTION, VERSION_DOC)

    async def save_version(self, config: Dict[str, Any]) -> Dict[str, Any]:
        doc = {**config, "_id": VERSION_DOC, "last_updated": get_utc_now()}
        await self.db[VERSION_COLLECTION].replace_one({"_id": VERSION_DOC}, doc, upsert=True)
        doc.pop("_id")
        return doc
