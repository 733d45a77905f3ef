from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from pulse.models.user import UserDocument
from pulse.utils.documents import utcnow


class UserRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db.get_collection("users")

    async def create_user(self, user_id: str, email: str, hashed_password: str) -> str:
        doc: UserDocument = {"_id": user_id, "email": email, "hashed_password": hashed_password, "created_at": utcnow()}
        await self._collection.insert_one(doc)
        return user_id

    async def get_user_by_email(self, email: str) -> Optional[UserDocument]:
        return await self._collection.find_one({"email": email})

    async def get_user_by_id(self, user_id: str) -> Optional[UserDocument]:
        return await self._collection.find_one({"_id": user_id}, {"hashed_password": 0})

    async def delete_user(self, user_id: str) -> None:
        await self._collection.delete_one({"_id": user_id})
