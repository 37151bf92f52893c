"""Admin registry lookups."""
from motor.motor_asyncio import AsyncIOMotorDatabase


class AdminRepository:
    """The ``admins`` collection holds one document per admin, keyed by email."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.admins

    async def is_admin(self, email: str) -> bool:
        if not email:
            return False
        return await self.collection.find_one({"_id": email}) is not None
