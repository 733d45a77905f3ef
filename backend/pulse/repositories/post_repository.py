from typing import Any, Dict, Iterable, List, Optional, Set

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from pulse.models.post import BookmarkDocument, CommentDocument, LikeDocument, PostDocument
from pulse.repositories.pipelines import events_on_owner_posts, join_profile, page


class PostRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["posts"]

    async def create(self, doc: PostDocument) -> PostDocument:
        await self.collection.insert_one(doc)
        return doc

    async def get(self, post_id: str) -> Optional[PostDocument]:
        return await self.collection.find_one({"_id": post_id})

    async def list(
        self,
        limit: int,
        offset: int = 0,
        post_type: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        match: Dict[str, Any] = {}
        if post_type:
            match["post_type"] = post_type
        if user_id:
            match["user_id"] = user_id
        pipeline = [
            {"$match": match},
            {"$sort": {"created_at": DESCENDING, "_id": DESCENDING}},
            *page(limit, offset),
            *join_profile("user_id"),
        ]
        return await self.collection.aggregate(pipeline).to_list(length=limit)

    async def delete(self, post_id: str) -> bool:
        result = await self.collection.delete_one({"_id": post_id})
        return result.deleted_count > 0

    async def increment(self, post_id: str, field: str, delta: int) -> None:
        await self.collection.update_one({"_id": post_id}, {"$inc": {field: delta}})

    async def get_counter(self, post_id: str, field: str) -> int:
        doc = await self.collection.find_one({"_id": post_id}, {field: 1})
        return int((doc or {}).get(field) or 0)


class LikeRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["likes"]

    async def find(self, post_id: str, user_id: str) -> Optional[LikeDocument]:
        return await self.collection.find_one({"post_id": post_id, "user_id": user_id})

    async def insert(self, doc: LikeDocument) -> None:
        await self.collection.insert_one(doc)

    async def delete(self, post_id: str, user_id: str) -> bool:
        result = await self.collection.delete_one({"post_id": post_id, "user_id": user_id})
        return result.deleted_count > 0

    async def delete_for_post(self, post_id: str) -> None:
        await self.collection.delete_many({"post_id": post_id})

    async def list_for_post(self, post_id: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": {"post_id": post_id}},
            {"$sort": {"created_at": DESCENDING}},
            *page(limit, offset),
            *join_profile("user_id"),
        ]
        return await self.collection.aggregate(pipeline).to_list(length=limit)

    async def count_for_post(self, post_id: str) -> int:
        return await self.collection.count_documents({"post_id": post_id})

    async def liked_post_ids(self, user_id: str, post_ids: Iterable[str]) -> Set[str]:
        ids = list(post_ids)
        if not ids:
            return set()
        cursor = self.collection.find({"user_id": user_id, "post_id": {"$in": ids}}, {"post_id": 1})
        return {doc["post_id"] async for doc in cursor}

    async def recent_on_posts_of(self, owner_id: str, post_type: str, limit: int) -> List[Dict[str, Any]]:
        pipeline = events_on_owner_posts("likes", owner_id, post_type, limit, fields={})
        return await self._db["posts"].aggregate(pipeline).to_list(length=limit)


class CommentRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["comments"]

    async def insert(self, doc: CommentDocument) -> CommentDocument:
        await self.collection.insert_one(doc)
        return doc

    async def get(self, comment_id: str) -> Optional[CommentDocument]:
        return await self.collection.find_one({"_id": comment_id})

    async def delete(self, comment_id: str) -> bool:
        result = await self.collection.delete_one({"_id": comment_id})
        return result.deleted_count > 0

    async def delete_for_post(self, post_id: str) -> None:
        await self.collection.delete_many({"post_id": post_id})

    async def list_for_post(self, post_id: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": {"post_id": post_id}},
            {"$sort": {"created_at": 1, "_id": 1}},
            *page(limit, offset),
            *join_profile("user_id"),
        ]
        return await self.collection.aggregate(pipeline).to_list(length=limit)

    async def count_for_post(self, post_id: str) -> int:
        return await self.collection.count_documents({"post_id": post_id})

    async def recent_on_posts_of(self, owner_id: str, post_type: str, limit: int) -> List[Dict[str, Any]]:
        pipeline = events_on_owner_posts("comments", owner_id, post_type, limit, fields={"comment": "$event.comment"})
        return await self._db["posts"].aggregate(pipeline).to_list(length=limit)


class BookmarkRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["bookmarks"]

    async def find(self, post_id: str, user_id: str) -> Optional[BookmarkDocument]:
        return await self.collection.find_one({"post_id": post_id, "user_id": user_id})

    async def insert(self, doc: BookmarkDocument) -> None:
        await self.collection.insert_one(doc)

    async def delete(self, post_id: str, user_id: str) -> bool:
        result = await self.collection.delete_one({"post_id": post_id, "user_id": user_id})
        return result.deleted_count > 0

    async def delete_for_post(self, post_id: str) -> None:
        await self.collection.delete_many({"post_id": post_id})

    def _with_posts(self, user_id: str, post_type: str) -> List[Dict[str, Any]]:
        return [
            {"$match": {"user_id": user_id}},
            {"$lookup": {"from": "posts", "localField": "post_id", "foreignField": "_id", "as": "post"}},
            {"$unwind": "$post"},
            {"$match": {"post.post_type": post_type}},
        ]

    async def list_for_user(self, user_id: str, post_type: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        pipeline = [
            *self._with_posts(user_id, post_type),
            {"$sort": {"created_at": DESCENDING}},
            *page(limit, offset),
            *join_profile("post.user_id", as_field="author"),
        ]
        return await self.collection.aggregate(pipeline).to_list(length=limit)

    async def count_for_user(self, user_id: str, post_type: str) -> int:
        pipeline = [*self._with_posts(user_id, post_type), {"$count": "total"}]
        rows = await self.collection.aggregate(pipeline).to_list(length=1)
        return rows[0]["total"] if rows else 0
