from datetime import timedelta
from typing import Any, Dict, List

from pulse.repositories.follow_repository import FollowRepository
from pulse.repositories.profile_repository import ProfileRepository
from pulse.repositories.story_repository import StoryRepository
from pulse.utils.documents import new_id, to_public, to_public_list, utcnow
from pulse.utils.errors import Forbidden, NotFound, ValidationFailed
from pulse.utils.storage import MEDIA_TYPES, MediaStorage
from pulse.utils.tasks import best_effort
from pulse.utils.validation import decode_base64_payload, require_uuid


STORY_TTL = timedelta(hours=24)


class StoryService:

    def __init__(
        self,
        story_repo: StoryRepository,
        follow_repo: FollowRepository,
        profile_repo: ProfileRepository,
        storage: MediaStorage,
    ) -> None:
        self._story_repo = story_repo
        self._follow_repo = follow_repo
        self._profile_repo = profile_repo
        self._storage = storage

    async def create_story(self, user_id: str, media_type: str | None, media_base64: str | None) -> Dict[str, Any]:
        if media_type not in MEDIA_TYPES:
            raise ValidationFailed("mediaType must be 'image' or 'video'", error="Bad Request")
        if not media_base64:
            raise ValidationFailed("mediaBase64 is required", error="Bad Request")
        profile = await self._profile_repo.get(user_id)
        if not profile:
            raise NotFound("User profile does not exist", error="Profile not found")
        data = decode_base64_payload(media_base64)

        url = await self._storage.upload_media("stories", user_id, "story", media_type, data)
        created_at = utcnow()
        doc = {
            "_id": new_id(),
            "user_id": user_id,
            "username": profile.get("username"),
            "image_url": url if media_type == "image" else None,
            "video_url": url if media_type == "video" else None,
            "created_at": created_at,
            "expires_at": created_at + STORY_TTL,
        }
        await self._story_repo.create(doc)
        story = to_public(doc)
        story["profiles"] = {"username": profile.get("username"), "profile_image_url": profile.get("profile_image_url")}
        return story

    async def following_stories(self, user_id: str) -> Dict[str, List[Dict[str, Any]]]:
        user_ids = await self._follow_repo.following_ids(user_id)
        if user_id not in user_ids:
            user_ids.append(user_id)
        stories = await self._story_repo.active_for_users(user_ids, utcnow())
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for story in stories:
            grouped.setdefault(story["user_id"], []).append(to_public(story))
        return grouped

    async def user_stories(self, user_id: str) -> List[Dict[str, Any]]:
        require_uuid(user_id, "user ID")
        stories = await self._story_repo.active_for_users([user_id], utcnow())
        return to_public_list(stories)

    async def delete_story(self, user_id: str, story_id: str) -> None:
        require_uuid(story_id, "story ID")
        story = await self._story_repo.get(story_id)
        if not story:
            raise NotFound("Story does not exist", error="Story not found")
        if story["user_id"] != user_id:
            raise Forbidden("You can only delete your own stories")
        await self._story_repo.delete(story_id)
        for url in (story.get("image_url"), story.get("video_url")):
            await best_effort(self._storage.delete_url("stories", url), "story media cleanup")
