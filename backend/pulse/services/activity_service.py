"""Activity feed: likes, comments and follows merged into one newest-first stream."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pulse.models.activity import ActivityEvent
from pulse.repositories.activity_repository import ActivityRepository
from pulse.repositories.follow_repository import FollowRepository
from pulse.repositories.post_repository import CommentRepository, LikeRepository
from pulse.utils.documents import new_id, to_public, to_public_list, utcnow
from pulse.utils.errors import ValidationFailed
from pulse.utils.tasks import gather_or_cancel
from pulse.utils.validation import is_uuid, require_uuid


logger = logging.getLogger(__name__)

ACTIVITY_TYPES = ("like", "comment", "follow", "mention")
FEED_DEFAULT_LIMIT = 50
FEED_MAX_LIMIT = 100


def like_event(row: Dict[str, Any]) -> ActivityEvent:
    return ActivityEvent(
        id=row["_id"],
        user_id=row["user_id"],
        type="like",
        post_id=row.get("post_id"),
        comment_text=None,
        created_at=row["created_at"],
        profiles=row.get("profiles"),
        posts=row.get("posts"),
    )


def comment_event(row: Dict[str, Any]) -> ActivityEvent:
    return ActivityEvent(
        id=row["_id"],
        user_id=row["user_id"],
        type="comment",
        post_id=row.get("post_id"),
        comment_text=row.get("comment"),
        created_at=row["created_at"],
        profiles=row.get("profiles"),
        posts=row.get("posts"),
    )


def follow_event(row: Dict[str, Any]) -> ActivityEvent:
    return ActivityEvent(
        id=row["_id"],
        user_id=row["follower_id"],
        type="follow",
        post_id=None,
        comment_text=None,
        created_at=row["created_at"],
        profiles=row.get("profiles"),
        posts=None,
    )


def _timestamp(value: Any) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def merge_events(sources: Iterable[List[ActivityEvent]], limit: int) -> List[ActivityEvent]:
    """Concatenate in source order, sort newest first and truncate.

    ``sorted`` is stable with ``reverse=True``, so events sharing a timestamp
    keep the order they were fetched in.
    """
    merged = [event for source in sources for event in source]
    merged = sorted(merged, key=lambda e: _timestamp(e["created_at"]), reverse=True)
    return merged[:limit]


def clamp_feed_limit(limit: Optional[int]) -> int:
    if not limit or limit < 1:
        return FEED_DEFAULT_LIMIT
    return min(limit, FEED_MAX_LIMIT)


class ActivityService:

    def __init__(
        self,
        like_repo: LikeRepository,
        comment_repo: CommentRepository,
        follow_repo: FollowRepository,
        activity_repo: ActivityRepository,
    ) -> None:
        self._like_repo = like_repo
        self._comment_repo = comment_repo
        self._follow_repo = follow_repo
        self._activity_repo = activity_repo

    async def _likes(self, user_id: str, post_type: str, limit: int) -> List[ActivityEvent]:
        rows = await self._like_repo.recent_on_posts_of(user_id, post_type, limit)
        return [like_event(r) for r in rows]

    async def _comments(self, user_id: str, post_type: str, limit: int) -> List[ActivityEvent]:
        rows = await self._comment_repo.recent_on_posts_of(user_id, post_type, limit)
        return [comment_event(r) for r in rows]

    async def _follows(self, user_id: str, limit: int) -> List[ActivityEvent]:
        rows = await self._follow_repo.recent_followers_of(user_id, limit)
        return [follow_event(r) for r in rows]

    async def build_feed(
        self,
        user_id: str,
        limit: Optional[int] = None,
        post_type: Optional[str] = None,
        include_follows: bool = True,
    ) -> List[ActivityEvent]:
        """Each source is capped at ``limit`` on its own, so one busy event type can crowd out the others."""
        limit = clamp_feed_limit(limit)
        post_type = post_type if post_type == "twitter" else "instagram"

        sources = [self._likes(user_id, post_type, limit), self._comments(user_id, post_type, limit)]
        if include_follows:
            sources.append(self._follows(user_id, limit))
        results = await gather_or_cancel(*sources)
        return merge_events(results, limit)

    async def list_activities(self, user_id: str, limit: Optional[int]) -> List[Dict[str, Any]]:
        rows = await self._activity_repo.list_for_target(user_id, clamp_feed_limit(limit))
        return to_public_list(rows)

    async def create_activity(
        self,
        user_id: str,
        activity_type: str,
        target_user_id: Optional[str],
        post_id: Optional[str] = None,
        comment_text: Optional[str] = None,
    ) -> Dict[str, Any]:
        if activity_type not in ACTIVITY_TYPES:
            raise ValidationFailed("Invalid activity type", error="Bad Request")
        require_uuid(target_user_id, "target user ID")
        if post_id is not None and not is_uuid(post_id):
            raise ValidationFailed("post ID must be a valid UUID", error="Invalid post ID")
        doc = {
            "_id": new_id(),
            "user_id": user_id,
            "target_user_id": target_user_id,
            "type": activity_type,
            "post_id": post_id,
            "comment_text": comment_text,
            "created_at": utcnow(),
        }
        await self._activity_repo.create(doc)
        return to_public(doc)

    async def delete_activity(self, user_id: str, activity_id: str) -> bool:
        require_uuid(activity_id, "activity ID")
        return await self._activity_repo.delete_own(activity_id, user_id)
