from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from pulse.database.connection import mongo_db_dependency
from pulse.repositories.activity_repository import ActivityRepository
from pulse.repositories.follow_repository import FollowRepository
from pulse.repositories.post_repository import CommentRepository, LikeRepository
from pulse.schemas.activity import ActivityCreate
from pulse.services.activity_service import ActivityService
from pulse.utils.dependencies import get_current_user
from pulse.utils.errors import NotFound


router = APIRouter(prefix="/api/activities", tags=["activities"])


def get_activity_service(db = Depends(mongo_db_dependency)) -> ActivityService:
    return ActivityService(LikeRepository(db), CommentRepository(db), FollowRepository(db), ActivityRepository(db))


@router.get("/feed")
async def activity_feed(
    limit: Optional[int] = None,
    post_type: Optional[str] = None,
    include_follows: Optional[bool] = None,
    include_follows_camel: Optional[bool] = Query(None, alias="includeFollows"),
    current_user: dict = Depends(get_current_user),
    service: ActivityService = Depends(get_activity_service),
):
    # the service clamps limit and falls back to instagram for unknown post types
    if include_follows is None:
        include_follows = include_follows_camel is not False
    activities = await service.build_feed(current_user["_id"], limit, post_type, include_follows)
    return {"activities": activities}


@router.get("")
async def list_activities(limit: Optional[int] = None, current_user: dict = Depends(get_current_user), service: ActivityService = Depends(get_activity_service)):
    return {"activities": await service.list_activities(current_user["_id"], limit)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_activity(body: ActivityCreate, current_user: dict = Depends(get_current_user), service: ActivityService = Depends(get_activity_service)):
    activity = await service.create_activity(current_user["_id"], body.type, body.target_user_id, body.post_id, body.comment_text)
    return {"activity": activity}


@router.delete("/{activity_id}")
async def delete_activity(activity_id: str, current_user: dict = Depends(get_current_user), service: ActivityService = Depends(get_activity_service)):
    if not await service.delete_activity(current_user["_id"], activity_id):
        raise NotFound("Activity does not exist", error="Activity not found")
    return {"message": "Activity deleted successfully"}
