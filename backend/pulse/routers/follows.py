from typing import Optional

from fastapi import APIRouter, Depends, status

from pulse.database.connection import mongo_db_dependency
from pulse.repositories.follow_repository import FollowRepository
from pulse.repositories.profile_repository import ProfileRepository
from pulse.services.follow_service import FollowService
from pulse.utils.dependencies import get_current_user
from pulse.utils.validation import clamp_pagination, pagination_meta


router = APIRouter(prefix="/api/follows", tags=["follows"])


def get_follow_service(db = Depends(mongo_db_dependency)) -> FollowService:
    return FollowService(FollowRepository(db), ProfileRepository(db))


@router.get("/suggestions")
async def suggestions(limit: Optional[int] = None, current_user: dict = Depends(get_current_user), service: FollowService = Depends(get_follow_service)):
    limit, _ = clamp_pagination(limit, 0, default=10)
    return {"suggestions": await service.suggestions(current_user["_id"], limit)}


@router.post("/{user_id}", status_code=status.HTTP_201_CREATED)
async def follow(user_id: str, current_user: dict = Depends(get_current_user), service: FollowService = Depends(get_follow_service)):
    follow = await service.follow(current_user["_id"], user_id)
    return {"message": "Successfully followed user", "follow": follow}


@router.delete("/{user_id}")
async def unfollow(user_id: str, current_user: dict = Depends(get_current_user), service: FollowService = Depends(get_follow_service)):
    await service.unfollow(current_user["_id"], user_id)
    return {"message": "Successfully unfollowed user"}


@router.get("/{user_id}/status")
async def follow_status(user_id: str, current_user: dict = Depends(get_current_user), service: FollowService = Depends(get_follow_service)):
    return {"is_following": await service.is_following(current_user["_id"], user_id)}


@router.get("/{user_id}/followers")
async def list_followers(user_id: str, limit: Optional[int] = None, offset: Optional[int] = None, service: FollowService = Depends(get_follow_service)):
    limit, offset = clamp_pagination(limit, offset)
    followers = await service.followers(user_id, limit, offset)
    return {"followers": followers, "pagination": pagination_meta(limit, offset, len(followers))}


@router.get("/{user_id}/following")
async def list_following(user_id: str, limit: Optional[int] = None, offset: Optional[int] = None, service: FollowService = Depends(get_follow_service)):
    limit, offset = clamp_pagination(limit, offset)
    following = await service.following(user_id, limit, offset)
    return {"following": following, "pagination": pagination_meta(limit, offset, len(following))}
