from typing import Optional

from fastapi import APIRouter, Depends, status

from pulse.database.connection import mongo_db_dependency
from pulse.repositories.profile_repository import ProfileRepository
from pulse.repositories.reel_repository import ReelRepository
from pulse.schemas.post import CommentCreate
from pulse.schemas.reel import ReelCreate
from pulse.services.reel_service import ReelService
from pulse.utils.dependencies import get_current_user, get_optional_user
from pulse.utils.storage import MediaStorage
from pulse.utils.validation import clamp_pagination


router = APIRouter(prefix="/api/reels", tags=["reels"])


def get_reel_service(db = Depends(mongo_db_dependency)) -> ReelService:
    return ReelService(ReelRepository(db), ProfileRepository(db), MediaStorage(db))


@router.get("")
async def list_reels(
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    current_user: Optional[dict] = Depends(get_optional_user),
    service: ReelService = Depends(get_reel_service),
):
    limit, offset = clamp_pagination(limit, offset)
    return await service.list_reels(limit, offset, current_user["_id"] if current_user else None)


@router.get("/user/{user_id}")
async def list_user_reels(
    user_id: str,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    current_user: Optional[dict] = Depends(get_optional_user),
    service: ReelService = Depends(get_reel_service),
):
    limit, offset = clamp_pagination(limit, offset)
    return await service.list_user_reels(user_id, limit, offset, current_user["_id"] if current_user else None)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_reel(body: ReelCreate, current_user: dict = Depends(get_current_user), service: ReelService = Depends(get_reel_service)):
    reel = await service.create_reel(
        current_user["_id"],
        caption=body.caption,
        music=body.music,
        video_url=body.video_url,
        video_base64=body.video_base64,
    )
    return {"message": "Reel created successfully", "reel": reel}


@router.delete("/{reel_id}")
async def delete_reel(reel_id: str, current_user: dict = Depends(get_current_user), service: ReelService = Depends(get_reel_service)):
    await service.delete_reel(current_user["_id"], reel_id)
    return {"message": "Reel deleted successfully"}


@router.get("/{reel_id}/like-status")
async def like_status(reel_id: str, current_user: dict = Depends(get_current_user), service: ReelService = Depends(get_reel_service)):
    return {"is_liked": await service.like_status(current_user["_id"], reel_id)}


@router.post("/{reel_id}/like")
async def like_reel(reel_id: str, current_user: dict = Depends(get_current_user), service: ReelService = Depends(get_reel_service)):
    await service.like(current_user["_id"], reel_id)
    return {"message": "Reel liked successfully"}


@router.delete("/{reel_id}/like")
async def unlike_reel(reel_id: str, current_user: dict = Depends(get_current_user), service: ReelService = Depends(get_reel_service)):
    await service.unlike(current_user["_id"], reel_id)
    return {"message": "Reel unliked successfully"}


@router.get("/{reel_id}/comments")
async def list_reel_comments(reel_id: str, service: ReelService = Depends(get_reel_service)):
    return {"comments": await service.list_comments(reel_id)}


@router.post("/{reel_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_reel_comment(reel_id: str, body: CommentCreate, current_user: dict = Depends(get_current_user), service: ReelService = Depends(get_reel_service)):
    comment = await service.add_comment(current_user["_id"], reel_id, body.comment)
    return {"message": "Comment added successfully", "comment": comment}
