import logging
from typing import Any, Dict, List

from pymongo.errors import DuplicateKeyError

from pulse.repositories.follow_repository import FollowRepository
from pulse.repositories.profile_repository import ProfileRepository
from pulse.services.profile_service import format_profile
from pulse.utils.documents import new_id, to_public, utcnow
from pulse.utils.errors import Conflict, NotFound, ValidationFailed
from pulse.utils.tasks import best_effort
from pulse.utils.validation import require_uuid


logger = logging.getLogger(__name__)


class FollowService:
    def __init__(self, follow_repo: FollowRepository, profile_repo: ProfileRepository):
        self.follow_repo = follow_repo
        self.profile_repo = profile_repo

    async def _adjust_counters(self, follower_id: str, following_id: str, delta: int) -> None:
        await best_effort(self.profile_repo.increment(following_id, "followers_count", delta), "followers_count update")
        await best_effort(self.profile_repo.increment(follower_id, "following_count", delta), "following_count update")

    async def follow(self, follower_id: str, target_id: str) -> Dict[str, Any]:
        require_uuid(target_id, "user ID")
        if follower_id == target_id:
            raise ValidationFailed("Cannot follow yourself", error="Bad Request")
        if not await self.profile_repo.exists(target_id):
            raise NotFound("User not found")
        if await self.follow_repo.get(follower_id, target_id):
            raise Conflict("Already following this user")
        doc = {"_id": new_id(), "follower_id": follower_id, "following_id": target_id, "created_at": utcnow()}
        try:
            await self.follow_repo.insert(doc)
        except DuplicateKeyError as exc:
            raise Conflict("Already following this user") from exc
        await self._adjust_counters(follower_id, target_id, 1)
        logger.info("%s now follows %s", follower_id, target_id)
        return to_public(doc)

    async def unfollow(self, follower_id: str, target_id: str) -> bool:
        require_uuid(target_id, "user ID")
        removed = await self.follow_repo.delete(follower_id, target_id)
        if removed:
            await self._adjust_counters(follower_id, target_id, -1)
        return removed

    async def is_following(self, follower_id: str, target_id: str) -> bool:
        require_uuid(target_id, "user ID")
        return await self.follow_repo.get(follower_id, target_id) is not None

    async def followers(self, user_id: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        require_uuid(user_id, "user ID")
        return await self.follow_repo.followers(user_id, limit, offset)

    async def following(self, user_id: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        require_uuid(user_id, "user ID")
        return await self.follow_repo.following(user_id, limit, offset)

    async def suggestions(self, user_id: str, limit: int) -> List[Dict[str, Any]]:
        exclude = await self.follow_repo.following_ids(user_id)
        exclude.append(user_id)
        profiles = await self.profile_repo.suggestions(exclude, limit)
        return [format_profile(p) for p in profiles]
