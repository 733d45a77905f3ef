from fastapi import APIRouter, Depends

from pulse.routers.posts import get_comment_service
from pulse.services.comment_service import CommentService
from pulse.utils.dependencies import get_current_user
from pulse.utils.validation import require_uuid


router = APIRouter(prefix="/api/comments", tags=["posts"])


@router.delete("/{comment_id}")
async def delete_comment(comment_id: str, current_user: dict = Depends(get_current_user), service: CommentService = Depends(get_comment_service)):
    require_uuid(comment_id, "comment ID")
    await service.delete_comment(current_user["_id"], comment_id)
    return {"message": "Comment deleted successfully"}
