"""News repository for reads on the news collection."""
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from api.models.article import SummaryStatusEnum
from shared.utils import generate_article_id, get_utc_now, normalize_url, url_hash

NEWS = "news"


def build_article(
    title: str,
    summary: str,
    source_url: str,
    source_name: Optional[str],
    category: Optional[Dict[str, Any]],
    created_by: str,
    image: Optional[str] = None
) -> Dict[str, Any]:
    """Build a new, published article document."""
    now = get_utc_now()
    normalized_url = normalize_url(source_url)
    return {
        "_id": generate_article_id(),
        "title": title,
        "summary": summary,
        "image": image or "",
        "source_url": source_url,
        "normalized_url": normalized_url,
        "normalized_url_hash": url_hash(source_url),
        "source_name": source_name or "Unknown",
        "created_by": created_by,
        "category": category["name"] if category else None,
        "categoryId": category["_id"] if category else None,
        "likes": 0,
        "published_at": now,
        "created_at": now,
        "is_rss": False
    }


class NewsRepository:
    """Repository for news article reads."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[NEWS]

    async def get_oldest_pending_summary(self) -> Optional[Dict[str, Any]]:
        """Oldest article still waiting for an AI summary."""
        cursor = self.collection.find({"summary_status": SummaryStatusEnum.PENDING.value}).sort("created_at", 1).limit(1)
        docs = await cursor.to_list(length=1)
        return docs[0] if docs else None

    async def list_articles(
        self,
        published: Optional[bool] = None,
        limit: int = 50,
        skip: int = 0
    ) -> List[Dict[str, Any]]:
        """List articles, newest first, optionally filtered by publish state."""
        query: Dict[str, Any] = {}
        if published is True:
            query["published_at"] = {"$ne": None}
        elif published is False:
            query["published_at"] = None

        cursor = self.collection.find(query).sort("created_at", -1).skip(skip).limit(limit)
        return await cursor.to_list(length=limit)
