import logging
from typing import Any, Dict

from pymongo.errors import DuplicateKeyError

from pulse.repositories.post_repository import LikeRepository, PostRepository
from pulse.utils.documents import new_id, utcnow
from pulse.utils.errors import NotFound
from pulse.utils.tasks import best_effort
from pulse.utils.validation import pagination_meta


logger = logging.getLogger(__name__)


class LikeService:

    def __init__(self, post_repo: PostRepository, like_repo: LikeRepository) -> None:
        self._post_repo = post_repo
        self._like_repo = like_repo

    async def toggle_like(self, user_id: str, post_id: str) -> Dict[str, Any]:
        if not await self._post_repo.get(post_id):
            raise NotFound("Post does not exist", error="Post not found")

        existing = await self._like_repo.find(post_id, user_id)
        if existing:
            if await self._like_repo.delete(post_id, user_id):
                await best_effort(self._post_repo.increment(post_id, "likes_count", -1), "likes_count decrement")
            is_liked = False
        else:
            try:
                await self._like_repo.insert({"_id": new_id(), "post_id": post_id, "user_id": user_id, "created_at": utcnow()})
            except DuplicateKeyError:
                # a concurrent request liked it first
                logger.info("Duplicate like on %s by %s ignored", post_id, user_id)
            else:
                await best_effort(self._post_repo.increment(post_id, "likes_count", 1), "likes_count increment")
            is_liked = True

        likes_count = await self._post_repo.get_counter(post_id, "likes_count")
        return {
            "message": "Post liked successfully" if is_liked else "Post unliked successfully",
            "is_liked": is_liked,
            "likes_count": likes_count,
        }

    async def list_likes(self, post_id: str, limit: int, offset: int) -> Dict[str, Any]:
        likes = await self._like_repo.list_for_post(post_id, limit, offset)
        total = await self._like_repo.count_for_post(post_id)
        items = []
        for like in likes:
            liker = like.get("profiles") or {}
            items.append(
                {
                    "id": like["_id"],
                    "user_id": like["user_id"],
                    "username": liker.get("username") or "Unknown",
                    "profile_image_url": liker.get("profile_image_url"),
                    "created_at": like.get("created_at"),
                }
            )
        return {"likes": items, "pagination": pagination_meta(limit, offset, len(items), total)}
