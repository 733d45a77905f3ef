from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from pulse.models.follow import FollowDocument
from pulse.repositories.pipelines import PROFILE_CARD, join_profile, page


class FollowRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["follows"]

    async def get(self, follower_id: str, following_id: str) -> Optional[FollowDocument]:
        return await self.collection.find_one({"follower_id": follower_id, "following_id": following_id})

    async def insert(self, doc: FollowDocument) -> FollowDocument:
        await self.collection.insert_one(doc)
        return doc

    async def delete(self, follower_id: str, following_id: str) -> bool:
        result = await self.collection.delete_one({"follower_id": follower_id, "following_id": following_id})
        return result.deleted_count > 0

    async def following_ids(self, user_id: str) -> List[str]:
        cursor = self.collection.find({"follower_id": user_id}, {"following_id": 1})
        return [doc["following_id"] async for doc in cursor]

    async def _profiles(self, match: Dict[str, Any], profile_field: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": match},
            {"$sort": {"created_at": DESCENDING}},
            *page(limit, offset),
            *join_profile(profile_field, as_field="profile", projection=PROFILE_CARD),
        ]
        rows = await self.collection.aggregate(pipeline).to_list(length=limit)
        return [row["profile"] for row in rows if row.get("profile")]

    async def followers(self, user_id: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        return await self._profiles({"following_id": user_id}, "follower_id", limit, offset)

    async def following(self, user_id: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        return await self._profiles({"follower_id": user_id}, "following_id", limit, offset)

    async def recent_followers_of(self, user_id: str, limit: int) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": {"following_id": user_id, "follower_id": {"$ne": user_id}}},
            {"$sort": {"created_at": DESCENDING}},
            {"$limit": limit},
            *join_profile("follower_id"),
        ]
        return await self.collection.aggregate(pipeline).to_list(length=limit)
