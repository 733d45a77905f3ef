from typing import Optional

from fastapi import APIRouter, Depends, status

from pulse.database.connection import mongo_db_dependency
from pulse.repositories.post_repository import BookmarkRepository, CommentRepository, LikeRepository, PostRepository
from pulse.repositories.profile_repository import ProfileRepository
from pulse.schemas.post import CommentCreate, PostCreate
from pulse.services.comment_service import CommentService
from pulse.services.like_service import LikeService
from pulse.services.post_service import PostService
from pulse.utils.dependencies import get_current_user, get_optional_user
from pulse.utils.storage import MediaStorage
from pulse.utils.validation import clamp_pagination, require_uuid


router = APIRouter(prefix="/api/posts", tags=["posts"])


def get_post_service(db = Depends(mongo_db_dependency)) -> PostService:
    return PostService(
        PostRepository(db),
        LikeRepository(db),
        CommentRepository(db),
        BookmarkRepository(db),
        ProfileRepository(db),
        MediaStorage(db),
    )


def get_like_service(db = Depends(mongo_db_dependency)) -> LikeService:
    return LikeService(PostRepository(db), LikeRepository(db))


def get_comment_service(db = Depends(mongo_db_dependency)) -> CommentService:
    return CommentService(PostRepository(db), CommentRepository(db), ProfileRepository(db))


@router.get("")
async def list_posts(
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    post_type: Optional[str] = None,
    current_user: Optional[dict] = Depends(get_optional_user),
    service: PostService = Depends(get_post_service),
):
    limit, offset = clamp_pagination(limit, offset)
    viewer_id = current_user["_id"] if current_user else None
    return await service.list_feed(limit, offset, post_type, viewer_id)


@router.get("/user/{user_id}")
async def list_user_posts(
    user_id: str,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    post_type: Optional[str] = None,
    current_user: Optional[dict] = Depends(get_optional_user),
    service: PostService = Depends(get_post_service),
):
    limit, offset = clamp_pagination(limit, offset)
    viewer_id = current_user["_id"] if current_user else None
    return await service.list_for_user(user_id, limit, offset, post_type, viewer_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(body: PostCreate, current_user: dict = Depends(get_current_user), service: PostService = Depends(get_post_service)):
    post = await service.create_post(
        current_user["_id"],
        caption=body.caption,
        image_url=body.image_url,
        video_url=body.video_url,
        post_type=body.post_type,
        image_base64=body.image_base64,
        video_base64=body.video_base64,
    )
    return {"message": "Post created successfully", "post": post}


@router.delete("/{post_id}")
async def delete_post(post_id: str, current_user: dict = Depends(get_current_user), service: PostService = Depends(get_post_service)):
    require_uuid(post_id, "post ID")
    await service.delete_post(current_user["_id"], post_id)
    return {"message": "Post deleted successfully"}


@router.post("/{post_id}/like")
async def toggle_like(post_id: str, current_user: dict = Depends(get_current_user), service: LikeService = Depends(get_like_service)):
    require_uuid(post_id, "post ID")
    return await service.toggle_like(current_user["_id"], post_id)


@router.get("/{post_id}/likes")
async def list_likes(post_id: str, limit: Optional[int] = None, offset: Optional[int] = None, service: LikeService = Depends(get_like_service)):
    require_uuid(post_id, "post ID")
    limit, offset = clamp_pagination(limit, offset)
    return await service.list_likes(post_id, limit, offset)


@router.post("/{post_id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(post_id: str, body: CommentCreate, current_user: dict = Depends(get_current_user), service: CommentService = Depends(get_comment_service)):
    require_uuid(post_id, "post ID")
    comment = await service.add_comment(current_user["_id"], post_id, body.comment)
    return {"message": "Comment added successfully", "comment": comment}


@router.get("/{post_id}/comments")
async def list_comments(post_id: str, limit: Optional[int] = None, offset: Optional[int] = None, service: CommentService = Depends(get_comment_service)):
    require_uuid(post_id, "post ID")
    limit, offset = clamp_pagination(limit, offset)
    return await service.list_comments(post_id, limit, offset)
