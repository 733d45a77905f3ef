import logging
from typing import Any, Dict

from pulse.repositories.post_repository import CommentRepository, PostRepository
from pulse.repositories.profile_repository import ProfileRepository
from pulse.utils.documents import new_id, utcnow
from pulse.utils.errors import Forbidden, NotFound, ValidationFailed
from pulse.utils.tasks import best_effort
from pulse.utils.validation import pagination_meta


logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 1000


def format_comment(comment: Dict[str, Any]) -> Dict[str, Any]:
    author = comment.get("profiles") or {}
    return {
        "id": comment["_id"],
        "post_id": comment.get("post_id"),
        "user_id": comment.get("user_id"),
        "username": comment.get("username") or author.get("username"),
        "profile_image_url": author.get("profile_image_url"),
        "comment": comment.get("comment"),
        "created_at": comment.get("created_at"),
    }


def clean_comment(text: str | None) -> str:
    text = (text or "").strip()
    if not text:
        raise ValidationFailed("Comment text is required and cannot be empty")
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationFailed(f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters")
    return text


class CommentService:

    def __init__(self, post_repo: PostRepository, comment_repo: CommentRepository, profile_repo: ProfileRepository) -> None:
        self._post_repo = post_repo
        self._comment_repo = comment_repo
        self._profile_repo = profile_repo

    async def add_comment(self, user_id: str, post_id: str, text: str | None) -> Dict[str, Any]:
        text = clean_comment(text)
        if not await self._post_repo.get(post_id):
            raise NotFound("Post does not exist", error="Post not found")
        profile = await self._profile_repo.get(user_id)
        if not profile:
            raise NotFound("User profile does not exist", error="Profile not found")

        doc = {
            "_id": new_id(),
            "post_id": post_id,
            "user_id": user_id,
            "username": profile.get("username"),
            "comment": text,
            "created_at": utcnow(),
        }
        await self._comment_repo.insert(doc)
        await best_effort(self._post_repo.increment(post_id, "comments_count", 1), "comments_count increment")
        doc["profiles"] = {"username": profile.get("username"), "profile_image_url": profile.get("profile_image_url")}
        return format_comment(doc)

    async def list_comments(self, post_id: str, limit: int, offset: int) -> Dict[str, Any]:
        comments = await self._comment_repo.list_for_post(post_id, limit, offset)
        total = await self._comment_repo.count_for_post(post_id)
        items = [format_comment(c) for c in comments]
        return {"comments": items, "pagination": pagination_meta(limit, offset, len(items), total)}

    async def delete_comment(self, user_id: str, comment_id: str) -> None:
        comment = await self._comment_repo.get(comment_id)
        if not comment:
            raise NotFound("Comment does not exist", error="Comment not found")
        if comment.get("user_id") != user_id:
            raise Forbidden("You can only delete your own comments")
        if await self._comment_repo.delete(comment_id):
            await best_effort(
                self._post_repo.increment(comment["post_id"], "comments_count", -1),
                "comments_count decrement",
            )
