from typing import Optional

from fastapi import APIRouter, Depends

from pulse.database.connection import mongo_db_dependency
from pulse.repositories.post_repository import BookmarkRepository, PostRepository
from pulse.services.bookmark_service import BookmarkService
from pulse.utils.dependencies import get_current_user
from pulse.utils.validation import clamp_pagination, require_uuid


router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])


def get_bookmark_service(db = Depends(mongo_db_dependency)) -> BookmarkService:
    return BookmarkService(PostRepository(db), BookmarkRepository(db))


@router.post("/{post_id}")
async def toggle_bookmark(post_id: str, current_user: dict = Depends(get_current_user), service: BookmarkService = Depends(get_bookmark_service)):
    require_uuid(post_id, "post ID")
    return await service.toggle_bookmark(current_user["_id"], post_id)


@router.get("/{post_type}")
async def list_bookmarks(
    post_type: str,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    service: BookmarkService = Depends(get_bookmark_service),
):
    limit, offset = clamp_pagination(limit, offset)
    return await service.list_bookmarks(current_user["_id"], post_type, limit, offset)
