"""Category repository: lookups and the published-article counter."""
import logging
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from database.transaction import TransactionHandle
from shared.utils import generate_category_id, get_utc_now, slugify

logger = logging.getLogger(__name__)

CATEGORIES = "categories"


def resolve_category_ref(article: Dict[str, Any]) -> Optional[str]:
    """Category reference of an article: ``categoryId`` first, legacy ``category`` second."""
    return article.get("categoryId") or article.get("category") or None


class CategoryRepository:
    """Repository for Category CRUD operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[CATEGORIES]

    @staticmethod
    def get_slug(name: str) -> str:
        return slugify(name)

    async def get_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        """Get a category by ID."""
        return await self.collection.find_one({"_id": category_id})

    async def ensure_category(self, name: str) -> Dict[str, Any]:
        """Return the category with this name's slug, creating it if missing."""
        if not name or not name.strip():
            raise ValueError("Category name required")

        slug = self.get_slug(name)
        existing = await self.collection.find_one({"slug": slug})
        if existing:
            return existing

        category = {
            "_id": generate_category_id(),
            "name": name.strip(),
            "slug": slug,
            "postCount": 0,
            "lastPostAt": None,
            "enabled": True,
            "created_at": get_utc_now()
        }
        try:
            await self.collection.insert_one(category)
            return category
        except Exception as e:
            # Lost a race on the unique slug index
            if "duplicate key" in str(e).lower():
                return await self.collection.find_one({"slug": slug})
            raise

    async def adjust_count(
        self,
        category_ref: Optional[str],
        delta: int,
        txn: TransactionHandle
    ) -> bool:
        """
        Adjust a category's published-article counter inside ``txn``.

        Writes ``max(0, postCount + delta)``. Returns False without writing
        when the reference does not resolve to a category document.
        """
        if delta not in (1, -1):
            raise ValueError(f"Category count delta must be +1 or -1, got {delta}")
        if not category_ref:
            return False

        category = await txn.get(CATEGORIES, category_ref)
        if category is None:
            logger.warning(f"Category {category_ref} not found, count not adjusted")
            return False

        new_count = max(0, (category.get("postCount") or 0) + delta)
        fields: Dict[str, Any] = {"postCount": new_count}
        if delta > 0:
            fields["lastPostAt"] = get_utc_now()

        txn.update(CATEGORIES, category_ref, fields)
        return True

    async def get_all_categories(self) -> List[Dict[str, Any]]:
        """All categories (admin view)."""
        cursor = self.collection.find({}).sort("name", 1)
        return await cursor.to_list(length=None)

    async def get_active_categories(self) -> List[Dict[str, Any]]:
        """Enabled categories with at least one published article, busiest first."""
        cursor = self.collection.find({
            "enabled": True,
            "postCount": {"$gt": 0}
        }).sort("postCount", -1)
        return await cursor.to_list(length=None)
