import logging
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from pulse.repositories.profile_repository import ProfileRepository
from pulse.repositories.reel_repository import ReelRepository
from pulse.services.comment_service import clean_comment
from pulse.utils.documents import new_id, to_public, to_public_list, utcnow
from pulse.utils.errors import Conflict, Forbidden, NotFound, ValidationFailed
from pulse.utils.storage import MediaStorage
from pulse.utils.tasks import best_effort
from pulse.utils.validation import decode_base64_payload, pagination_meta, require_uuid


logger = logging.getLogger(__name__)


def format_reel(reel: Dict[str, Any], is_liked: bool = False) -> Dict[str, Any]:
    author = reel.get("profiles") or {}
    return {
        "id": reel["_id"],
        "user_id": reel.get("user_id"),
        "username": reel.get("username") or author.get("username") or "Unknown",
        "profile_image_url": author.get("profile_image_url"),
        "video_url": reel.get("video_url"),
        "caption": reel.get("caption"),
        "music": reel.get("music"),
        "likes_count": reel.get("likes_count") or 0,
        "comments_count": reel.get("comments_count") or 0,
        "is_liked": is_liked,
        "created_at": reel.get("created_at"),
        "updated_at": reel.get("updated_at"),
    }


class ReelService:

    def __init__(self, reel_repo: ReelRepository, profile_repo: ProfileRepository, storage: MediaStorage) -> None:
        self._reel_repo = reel_repo
        self._profile_repo = profile_repo
        self._storage = storage

    async def _require_reel(self, reel_id: str) -> Dict[str, Any]:
        require_uuid(reel_id, "reel ID")
        reel = await self._reel_repo.get(reel_id)
        if not reel:
            raise NotFound("Reel does not exist", error="Reel not found")
        return reel

    async def _page(self, limit: int, offset: int, viewer_id: Optional[str], user_id: Optional[str] = None) -> Dict[str, Any]:
        reels = await self._reel_repo.list(limit, offset, user_id=user_id)
        liked = set()
        if viewer_id:
            liked = await self._reel_repo.liked_reel_ids(viewer_id, [r["_id"] for r in reels])
        items = [format_reel(r, is_liked=r["_id"] in liked) for r in reels]
        return {"reels": items, "pagination": pagination_meta(limit, offset, len(items))}

    async def list_reels(self, limit: int, offset: int, viewer_id: Optional[str]) -> Dict[str, Any]:
        return await self._page(limit, offset, viewer_id)

    async def list_user_reels(self, user_id: str, limit: int, offset: int, viewer_id: Optional[str]) -> Dict[str, Any]:
        require_uuid(user_id, "user ID")
        return await self._page(limit, offset, viewer_id, user_id=user_id)

    async def create_reel(
        self,
        user_id: str,
        caption: Optional[str] = None,
        music: Optional[str] = None,
        video_url: Optional[str] = None,
        video_base64: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not video_url and not (video_base64 and video_base64.strip()):
            raise ValidationFailed("Reel must have video URL or base64 video data")
        profile = await self._profile_repo.get(user_id)
        if not profile:
            raise NotFound("User profile does not exist", error="Profile not found")
        if video_base64 and video_base64.strip():
            data = decode_base64_payload(video_base64)
            video_url = await self._storage.upload_media("reels", user_id, "reel", "video", data)

        now = utcnow()
        doc = {
            "_id": new_id(),
            "user_id": user_id,
            "username": profile.get("username"),
            "video_url": video_url,
            "caption": caption or None,
            "music": music or None,
            "likes_count": 0,
            "comments_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        await self._reel_repo.create(doc)
        doc["profiles"] = {"username": profile.get("username"), "profile_image_url": profile.get("profile_image_url")}
        return format_reel(doc)

    async def delete_reel(self, user_id: str, reel_id: str) -> None:
        reel = await self._require_reel(reel_id)
        if reel["user_id"] != user_id:
            raise Forbidden("You can only delete your own reels", error="Access denied")
        await self._reel_repo.delete(reel_id)
        await best_effort(self._storage.delete_url("reels", reel.get("video_url")), "reel media cleanup")
        logger.info("Reel %s deleted by %s", reel_id, user_id)

    async def like_status(self, user_id: str, reel_id: str) -> bool:
        await self._require_reel(reel_id)
        return await self._reel_repo.find_like(reel_id, user_id) is not None

    async def like(self, user_id: str, reel_id: str) -> None:
        reel = await self._require_reel(reel_id)
        if reel["user_id"] == user_id:
            raise ValidationFailed("You cannot like your own reel", error="Bad request")
        if await self._reel_repo.find_like(reel_id, user_id):
            raise Conflict("You have already liked this reel", error="Already liked")
        try:
            await self._reel_repo.insert_like({"_id": new_id(), "reel_id": reel_id, "user_id": user_id, "created_at": utcnow()})
        except DuplicateKeyError as exc:
            raise Conflict("You have already liked this reel", error="Already liked") from exc
        await best_effort(self._reel_repo.increment(reel_id, "likes_count", 1), "reel likes_count increment")

    async def unlike(self, user_id: str, reel_id: str) -> None:
        require_uuid(reel_id, "reel ID")
        if await self._reel_repo.delete_like(reel_id, user_id):
            await best_effort(self._reel_repo.increment(reel_id, "likes_count", -1), "reel likes_count decrement")

    async def list_comments(self, reel_id: str) -> List[Dict[str, Any]]:
        require_uuid(reel_id, "reel ID")
        return to_public_list(await self._reel_repo.list_comments(reel_id))

    async def add_comment(self, user_id: str, reel_id: str, text: Optional[str]) -> Dict[str, Any]:
        text = clean_comment(text)
        await self._require_reel(reel_id)
        profile = await self._profile_repo.get(user_id) or {}
        doc = {
            "_id": new_id(),
            "reel_id": reel_id,
            "user_id": user_id,
            "username": profile.get("username"),
            "comment": text,
            "created_at": utcnow(),
        }
        await self._reel_repo.insert_comment(doc)
        await best_effort(self._reel_repo.increment(reel_id, "comments_count", 1), "reel comments_count increment")
        return to_public(doc)
