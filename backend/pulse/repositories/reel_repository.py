from typing import Any, Dict, Iterable, List, Optional, Set

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from pulse.models.reel import ReelCommentDocument, ReelDocument, ReelLikeDocument
from pulse.repositories.pipelines import join_profile, page


class ReelRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["reels"]

    @property
    def likes(self):
        return self._db["reel_likes"]

    @property
    def comments(self):
        return self._db["reel_comments"]

    async def create(self, doc: ReelDocument) -> ReelDocument:
        await self.collection.insert_one(doc)
        return doc

    async def get(self, reel_id: str) -> Optional[ReelDocument]:
        return await self.collection.find_one({"_id": reel_id})

    async def list(self, limit: int, offset: int = 0, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        match = {"user_id": user_id} if user_id else {}
        pipeline = [
            {"$match": match},
            {"$sort": {"created_at": DESCENDING, "_id": DESCENDING}},
            *page(limit, offset),
            *join_profile("user_id"),
        ]
        return await self.collection.aggregate(pipeline).to_list(length=limit)

    async def delete(self, reel_id: str) -> bool:
        result = await self.collection.delete_one({"_id": reel_id})
        if result.deleted_count:
            await self.likes.delete_many({"reel_id": reel_id})
            await self.comments.delete_many({"reel_id": reel_id})
        return result.deleted_count > 0

    async def increment(self, reel_id: str, field: str, delta: int) -> None:
        await self.collection.update_one({"_id": reel_id}, {"$inc": {field: delta}})

    async def find_like(self, reel_id: str, user_id: str) -> Optional[ReelLikeDocument]:
        return await self.likes.find_one({"reel_id": reel_id, "user_id": user_id})

    async def insert_like(self, doc: ReelLikeDocument) -> None:
        await self.likes.insert_one(doc)

    async def delete_like(self, reel_id: str, user_id: str) -> bool:
        result = await self.likes.delete_one({"reel_id": reel_id, "user_id": user_id})
        return result.deleted_count > 0

    async def liked_reel_ids(self, user_id: str, reel_ids: Iterable[str]) -> Set[str]:
        ids = list(reel_ids)
        if not ids:
            return set()
        cursor = self.likes.find({"user_id": user_id, "reel_id": {"$in": ids}}, {"reel_id": 1})
        return {doc["reel_id"] async for doc in cursor}

    async def insert_comment(self, doc: ReelCommentDocument) -> ReelCommentDocument:
        await self.comments.insert_one(doc)
        return doc

    async def list_comments(self, reel_id: str) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": {"reel_id": reel_id}},
            {"$sort": {"created_at": 1, "_id": 1}},
            *join_profile("user_id"),
        ]
        return await self.comments.aggregate(pipeline).to_list(length=None)
