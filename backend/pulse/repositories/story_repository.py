from datetime import datetime
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from pulse.models.story import StoryDocument
from pulse.repositories.pipelines import join_profile


class StoryRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["stories"]

    async def create(self, doc: StoryDocument) -> StoryDocument:
        await self.collection.insert_one(doc)
        return doc

    async def get(self, story_id: str) -> Optional[StoryDocument]:
        return await self.collection.find_one({"_id": story_id})

    async def delete(self, story_id: str) -> bool:
        result = await self.collection.delete_one({"_id": story_id})
        return result.deleted_count > 0

    async def active_for_users(self, user_ids: List[str], now: datetime) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": {"user_id": {"$in": user_ids}, "expires_at": {"$gte": now}}},
            {"$sort": {"created_at": DESCENDING}},
            *join_profile("user_id"),
        ]
        return await self.collection.aggregate(pipeline).to_list(length=None)
