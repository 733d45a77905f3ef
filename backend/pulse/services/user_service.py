import logging
from typing import Any, Dict, Optional

from pymongo.errors import DuplicateKeyError

from pulse.repositories.profile_repository import ProfileRepository
from pulse.repositories.user_repository import UserRepository
from pulse.utils.documents import new_id, to_public
from pulse.utils.errors import Conflict, NotFound, Unauthorized
from pulse.utils.security import create_access_token, hash_password, verify_password


logger = logging.getLogger(__name__)


class UserService:
    """Account registration, login and token issuing."""

    def __init__(self, user_repository: UserRepository, profile_repository: ProfileRepository):
        self.user_repository = user_repository
        self.profile_repository = profile_repository

    async def register_user(
        self,
        email: str,
        password: str,
        username: Optional[str] = None,
        full_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create credentials plus an empty profile sharing the same id.
        Email and username must both be unused.
        """
        email = email.lower()
        if await self.user_repository.get_user_by_email(email):
            raise Conflict("Email already registered")
        if username and await self.profile_repository.username_taken(username):
            raise Conflict("Username already taken")

        user_id = new_id()
        try:
            await self.user_repository.create_user(user_id, email, hash_password(password))
        except DuplicateKeyError as exc:
            raise Conflict("Email already registered") from exc
        try:
            profile = await self.profile_repository.create(user_id, email, username, full_name)
        except DuplicateKeyError as exc:
            await self.user_repository.delete_user(user_id)
            raise Conflict("Username already taken") from exc

        logger.info("Registered user %s", user_id)
        return {"token": create_access_token(user_id, email), "user": to_public(profile)}

    async def authenticate_user(self, email: str, password: str) -> Dict[str, Any]:
        user = await self.user_repository.get_user_by_email(email.lower())
        if not user or not verify_password(password, user.get("hashed_password", "")):
            raise Unauthorized("Invalid credentials")
        profile = await self.profile_repository.get(user["_id"])
        return {
            "token": create_access_token(user["_id"], user["email"]),
            "user": to_public(profile) if profile else {"id": user["_id"], "email": user["email"]},
        }

    async def get_me(self, user_id: str) -> Dict[str, Any]:
        profile = await self.profile_repository.get(user_id)
        if not profile:
            raise NotFound("User profile does not exist", error="Profile not found")
        return to_public(profile)
