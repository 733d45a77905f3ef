import logging
from typing import Any, Dict, Optional

from pymongo.errors import DuplicateKeyError

from pulse.repositories.profile_repository import ProfileRepository
from pulse.repositories.user_repository import UserRepository
from pulse.utils.errors import Conflict, NotFound
from pulse.utils.storage import MediaStorage
from pulse.utils.validation import decode_base64_payload, require_uuid


logger = logging.getLogger(__name__)


def format_profile(profile: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": profile["_id"],
        "username": profile.get("username"),
        "full_name": profile.get("full_name"),
        "bio": profile.get("bio"),
        "profile_image_url": profile.get("profile_image_url"),
        "followers_count": profile.get("followers_count") or 0,
        "following_count": profile.get("following_count") or 0,
        "posts_count": profile.get("posts_count") or 0,
        "created_at": profile.get("created_at"),
        "updated_at": profile.get("updated_at"),
    }


class ProfileService:

    def __init__(self, profile_repo: ProfileRepository, user_repo: UserRepository, storage: MediaStorage) -> None:
        self._profile_repo = profile_repo
        self._user_repo = user_repo
        self._storage = storage

    async def _require(self, user_id: str) -> Dict[str, Any]:
        profile = await self._profile_repo.get(user_id)
        if not profile:
            raise NotFound("User profile does not exist", error="Profile not found")
        return profile

    async def get_me(self, user_id: str) -> Dict[str, Any]:
        profile = await self._require(user_id)
        user = await self._user_repo.get_user_by_id(user_id) or {}
        return {
            "user": {
                "id": user_id,
                "email": user.get("email", profile.get("email")),
                "created_at": user.get("created_at", profile.get("created_at")),
            },
            "profile": format_profile(profile),
        }

    async def update_me(
        self,
        user_id: str,
        username: Optional[str] = None,
        full_name: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> Dict[str, Any]:
        await self._require(user_id)
        updates = {k: v for k, v in (("username", username), ("full_name", full_name), ("bio", bio)) if v is not None}
        if "username" in updates and await self._profile_repo.username_taken(updates["username"], exclude_user_id=user_id):
            raise Conflict("Username already taken")
        try:
            profile = await self._profile_repo.update(user_id, updates)
        except DuplicateKeyError as exc:
            raise Conflict("Username already taken") from exc
        return format_profile(profile)

    async def upload_image(self, user_id: str, image_base64: str) -> Dict[str, Any]:
        data = decode_base64_payload(image_base64)
        await self._require(user_id)
        url = await self._storage.upload_media("profiles", user_id, "avatar", "image", data)
        profile = await self._profile_repo.update(user_id, {"profile_image_url": url})
        logger.info("Profile image updated for %s", user_id)
        return {"profile_image_url": url, "profile": format_profile(profile)}

    async def get_public(self, user_id: str) -> Dict[str, Any]:
        require_uuid(user_id, "user ID")
        profile = await self._profile_repo.get(user_id, public_only=True)
        if not profile:
            raise NotFound("User profile does not exist", error="Profile not found")
        public = format_profile(profile)
        public.pop("updated_at", None)
        return public
