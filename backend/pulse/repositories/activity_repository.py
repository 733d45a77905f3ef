from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from pulse.models.activity import ActivityDocument
from pulse.repositories.pipelines import join_profile


class ActivityRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["activities"]

    async def create(self, doc: ActivityDocument) -> ActivityDocument:
        await self.collection.insert_one(doc)
        return doc

    async def list_for_target(self, target_user_id: str, limit: int) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": {"target_user_id": target_user_id}},
            {"$sort": {"created_at": DESCENDING}},
            {"$limit": limit},
            *join_profile("user_id"),
            {
                "$lookup": {
                    "from": "posts",
                    "localField": "post_id",
                    "foreignField": "_id",
                    "as": "posts",
                    "pipeline": [{"$project": {"_id": 0, "image_url": 1}}],
                }
            },
            {"$set": {"posts": {"$ifNull": [{"$arrayElemAt": ["$posts", 0]}, None]}}},
        ]
        return await self.collection.aggregate(pipeline).to_list(length=limit)

    async def delete_own(self, activity_id: str, user_id: str) -> bool:
        result = await self.collection.delete_one({"_id": activity_id, "user_id": user_id})
        return result.deleted_count > 0
