import logging
from typing import Any, Dict, List, Optional

from pulse.repositories.post_repository import BookmarkRepository, CommentRepository, LikeRepository, PostRepository
from pulse.repositories.profile_repository import ProfileRepository
from pulse.utils.documents import new_id, utcnow
from pulse.utils.errors import Forbidden, NotFound, ValidationFailed
from pulse.utils.storage import MediaStorage
from pulse.utils.tasks import best_effort
from pulse.utils.validation import POST_TYPES, decode_base64_payload, pagination_meta, require_uuid


logger = logging.getLogger(__name__)


def format_post(post: Dict[str, Any], is_liked: bool = False) -> Dict[str, Any]:
    author = post.get("profiles") or {}
    return {
        "id": post["_id"],
        "user_id": post.get("user_id"),
        "username": post.get("username") or author.get("username") or "Unknown",
        "profile_image_url": author.get("profile_image_url"),
        "caption": post.get("caption"),
        "image_url": post.get("image_url"),
        "video_url": post.get("video_url"),
        "post_type": post.get("post_type") or "instagram",
        "likes_count": post.get("likes_count") or 0,
        "comments_count": post.get("comments_count") or 0,
        "is_liked": is_liked,
        "created_at": post.get("created_at"),
        "updated_at": post.get("updated_at"),
    }


class PostService:

    def __init__(
        self,
        post_repo: PostRepository,
        like_repo: LikeRepository,
        comment_repo: CommentRepository,
        bookmark_repo: BookmarkRepository,
        profile_repo: ProfileRepository,
        storage: MediaStorage,
    ) -> None:
        self._post_repo = post_repo
        self._like_repo = like_repo
        self._comment_repo = comment_repo
        self._bookmark_repo = bookmark_repo
        self._profile_repo = profile_repo
        self._storage = storage

    async def _decorate(self, posts: List[Dict[str, Any]], viewer_id: Optional[str]) -> List[Dict[str, Any]]:
        liked = set()
        if viewer_id:
            liked = await self._like_repo.liked_post_ids(viewer_id, [p["_id"] for p in posts])
        return [format_post(p, is_liked=p["_id"] in liked) for p in posts]

    async def list_feed(self, limit: int, offset: int, post_type: Optional[str], viewer_id: Optional[str]) -> Dict[str, Any]:
        if post_type not in POST_TYPES:
            post_type = None
        posts = await self._post_repo.list(limit, offset, post_type=post_type)
        items = await self._decorate(posts, viewer_id)
        return {"posts": items, "pagination": pagination_meta(limit, offset, len(items))}

    async def list_for_user(
        self,
        user_id: str,
        limit: int,
        offset: int,
        post_type: Optional[str],
        viewer_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        require_uuid(user_id, "user ID")
        if post_type not in POST_TYPES:
            post_type = None
        posts = await self._post_repo.list(limit, offset, post_type=post_type, user_id=user_id)
        items = await self._decorate(posts, viewer_id)
        return {"posts": items, "pagination": pagination_meta(limit, offset, len(items))}

    async def create_post(
        self,
        user_id: str,
        caption: Optional[str] = None,
        image_url: Optional[str] = None,
        video_url: Optional[str] = None,
        post_type: str = "instagram",
        image_base64: Optional[str] = None,
        video_base64: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not any((caption, image_url, video_url, image_base64, video_base64)):
            raise ValidationFailed("Post must have at least caption, image, or video")
        if post_type not in POST_TYPES:
            raise ValidationFailed('post_type must be either "instagram" or "twitter"')

        profile = await self._profile_repo.get(user_id)
        if not profile:
            raise NotFound("User profile does not exist", error="Profile not found")

        if image_base64 and image_base64.strip():
            data = decode_base64_payload(image_base64)
            image_url = await self._storage.upload_media("posts", user_id, "post", "image", data)
        if video_base64 and video_base64.strip():
            data = decode_base64_payload(video_base64)
            video_url = await self._storage.upload_media("posts", user_id, "post", "video", data)

        now = utcnow()
        doc = {
            "_id": new_id(),
            "user_id": user_id,
            "username": profile.get("username"),
            "caption": caption or None,
            "image_url": image_url or None,
            "video_url": video_url or None,
            "post_type": post_type,
            "likes_count": 0,
            "comments_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        await self._post_repo.create(doc)
        await best_effort(self._profile_repo.increment(user_id, "posts_count", 1), "posts_count increment")
        doc["profiles"] = {"username": profile.get("username"), "profile_image_url": profile.get("profile_image_url")}
        return format_post(doc)

    async def delete_post(self, user_id: str, post_id: str) -> None:
        post = await self._post_repo.get(post_id)
        if not post:
            raise NotFound("Post does not exist", error="Post not found")
        if post.get("user_id") != user_id:
            raise Forbidden("You can only delete your own posts")
        await self._post_repo.delete(post_id)
        await self._like_repo.delete_for_post(post_id)
        await self._comment_repo.delete_for_post(post_id)
        await self._bookmark_repo.delete_for_post(post_id)
        for url in (post.get("image_url"), post.get("video_url")):
            await best_effort(self._storage.delete_url("posts", url), "post media cleanup")
        await best_effort(self._profile_repo.increment(user_id, "posts_count", -1), "posts_count decrement")
        logger.info("Post %s deleted by %s", post_id, user_id)
