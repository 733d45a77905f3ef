from typing import Any, Dict

from pymongo.errors import DuplicateKeyError

from pulse.repositories.post_repository import BookmarkRepository, PostRepository
from pulse.utils.documents import new_id, utcnow
from pulse.utils.errors import NotFound, ValidationFailed
from pulse.utils.validation import POST_TYPES, pagination_meta


class BookmarkService:

    def __init__(self, post_repo: PostRepository, bookmark_repo: BookmarkRepository) -> None:
        self._post_repo = post_repo
        self._bookmark_repo = bookmark_repo

    async def toggle_bookmark(self, user_id: str, post_id: str) -> Dict[str, Any]:
        if not await self._post_repo.get(post_id):
            raise NotFound("Post does not exist", error="Post not found")
        if await self._bookmark_repo.find(post_id, user_id):
            await self._bookmark_repo.delete(post_id, user_id)
            return {"message": "Bookmark removed successfully", "is_bookmarked": False}
        try:
            await self._bookmark_repo.insert({"_id": new_id(), "post_id": post_id, "user_id": user_id, "created_at": utcnow()})
        except DuplicateKeyError:
            pass
        return {"message": "Post bookmarked successfully", "is_bookmarked": True}

    async def list_bookmarks(self, user_id: str, post_type: str, limit: int, offset: int) -> Dict[str, Any]:
        if post_type not in POST_TYPES:
            raise ValidationFailed('post_type must be either "instagram" or "twitter"')
        rows = await self._bookmark_repo.list_for_user(user_id, post_type, limit, offset)
        total = await self._bookmark_repo.count_for_user(user_id, post_type)
        posts = []
        for row in rows:
            post = row["post"]
            author = row.get("author") or {}
            posts.append(
                {
                    "id": post["_id"],
                    "user_id": post.get("user_id") or "",
                    "username": author.get("username") or "Unknown",
                    "profile_image_url": author.get("profile_image_url"),
                    "caption": post.get("caption") or "",
                    "image_url": post.get("image_url"),
                    "video_url": post.get("video_url"),
                    "post_type": post_type,
                    "likes_count": post.get("likes_count") or 0,
                    "comments_count": post.get("comments_count") or 0,
                    "is_liked": False,
                    "is_bookmarked": True,
                    "created_at": post.get("created_at"),
                    "updated_at": post.get("updated_at") or post.get("created_at"),
                }
            )
        return {"posts": posts, "pagination": pagination_meta(limit, offset, len(posts), total)}
