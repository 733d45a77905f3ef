from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from pulse.models.message import MessageDocument
from pulse.repositories.read_state import ReadState
from pulse.utils.documents import utcnow


class MessageRepository:

    def __init__(self, db: AsyncIOMotorDatabase, read_state: ReadState) -> None:
        self._db = db
        self.read_state = read_state

    @property
    def collection(self):
        return self._db["messages"]

    @staticmethod
    def _between(user_a: str, user_b: str) -> Dict[str, Any]:
        return {
            "$or": [
                {"sender_id": user_a, "receiver_id": user_b},
                {"sender_id": user_b, "receiver_id": user_a},
            ]
        }

    async def save_message(self, doc: MessageDocument) -> MessageDocument:
        doc = {**doc, **self.read_state.initial_fields()}
        await self.collection.insert_one(doc)
        return doc

    async def get(self, message_id: str) -> Optional[MessageDocument]:
        return await self.collection.find_one({"_id": message_id})

    async def list_between(self, user_a: str, user_b: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        cursor = (
            self.collection.find(self._between(user_a, user_b))
            .sort([("created_at", DESCENDING), ("_id", DESCENDING)])
            .skip(offset)
            .limit(limit)
        )
        return await cursor.to_list(length=limit)

    async def count_between(self, user_a: str, user_b: str) -> int:
        return await self.collection.count_documents(self._between(user_a, user_b))

    async def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """Every message the user sent or received, newest first."""
        cursor = self.collection.find({"$or": [{"sender_id": user_id}, {"receiver_id": user_id}]}).sort(
            [("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        return await cursor.to_list(length=None)

    async def count_unread(self, sender_id: str, receiver_id: str) -> int:
        query = {"sender_id": sender_id, "receiver_id": receiver_id, **self.read_state.unread_filter()}
        return await self.collection.count_documents(query)

    async def mark_read_from(self, sender_id: str, receiver_id: str) -> int:
        query = {"sender_id": sender_id, "receiver_id": receiver_id, **self.read_state.unread_filter()}
        result = await self.collection.update_many(query, self.read_state.mark_read_update(utcnow()))
        return result.modified_count or 0

    async def mark_read(self, message_id: str) -> bool:
        result = await self.collection.update_one({"_id": message_id}, self.read_state.mark_read_update(utcnow()))
        return bool(result.modified_count)
