from typing import Any, Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from pulse.models.profile import ProfileDocument
from pulse.utils.documents import utcnow


PUBLIC_FIELDS = {
    "username": 1,
    "full_name": 1,
    "bio": 1,
    "profile_image_url": 1,
    "followers_count": 1,
    "following_count": 1,
    "posts_count": 1,
    "created_at": 1,
}


class ProfileRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["profiles"]

    async def create(self, user_id: str, email: str, username: Optional[str], full_name: Optional[str]) -> ProfileDocument:
        now = utcnow()
        doc: ProfileDocument = {
            "_id": user_id,
            "email": email,
            "username": username,
            "full_name": full_name,
            "bio": None,
            "profile_image_url": None,
            "followers_count": 0,
            "following_count": 0,
            "posts_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        await self.collection.insert_one(doc)
        return doc

    async def get(self, user_id: str, public_only: bool = False) -> Optional[ProfileDocument]:
        projection = PUBLIC_FIELDS if public_only else None
        return await self.collection.find_one({"_id": user_id}, projection)

    async def exists(self, user_id: str) -> bool:
        return await self.collection.count_documents({"_id": user_id}, limit=1) > 0

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        unique = list({uid for uid in user_ids if uid})
        if not unique:
            return {}
        cursor = self.collection.find({"_id": {"$in": unique}}, {"username": 1, "full_name": 1, "profile_image_url": 1})
        return {doc["_id"]: doc async for doc in cursor}

    async def username_taken(self, username: str, exclude_user_id: Optional[str] = None) -> bool:
        query: Dict[str, Any] = {"username": username}
        if exclude_user_id:
            query["_id"] = {"$ne": exclude_user_id}
        return await self.collection.count_documents(query, limit=1) > 0

    async def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[ProfileDocument]:
        fields = dict(fields, updated_at=utcnow())
        return await self.collection.find_one_and_update(
            {"_id": user_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    async def increment(self, user_id: str, field: str, delta: int) -> None:
        await self.collection.update_one({"_id": user_id}, {"$inc": {field: delta}})

    async def list_others(self, user_id: str, limit: int) -> List[Dict[str, Any]]:
        cursor = (
            self.collection.find({"_id": {"$ne": user_id}}, {"email": 1, "username": 1, "full_name": 1, "profile_image_url": 1, "created_at": 1})
            .sort("created_at", DESCENDING)
            .limit(limit)
        )
        return await cursor.to_list(length=limit)

    async def suggestions(self, exclude_ids: List[str], limit: int) -> List[Dict[str, Any]]:
        cursor = (
            self.collection.find({"_id": {"$nin": exclude_ids}}, PUBLIC_FIELDS)
            .sort("followers_count", DESCENDING)
            .limit(limit)
        )
        return await cursor.to_list(length=limit)
