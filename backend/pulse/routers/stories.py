from fastapi import APIRouter, Depends, status

from pulse.database.connection import mongo_db_dependency
from pulse.repositories.follow_repository import FollowRepository
from pulse.repositories.profile_repository import ProfileRepository
from pulse.repositories.story_repository import StoryRepository
from pulse.schemas.story import StoryCreate
from pulse.services.story_service import StoryService
from pulse.utils.dependencies import get_current_user
from pulse.utils.storage import MediaStorage


router = APIRouter(prefix="/api/stories", tags=["stories"])


def get_story_service(db = Depends(mongo_db_dependency)) -> StoryService:
    return StoryService(StoryRepository(db), FollowRepository(db), ProfileRepository(db), MediaStorage(db))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_story(body: StoryCreate, current_user: dict = Depends(get_current_user), service: StoryService = Depends(get_story_service)):
    story = await service.create_story(current_user["_id"], body.media_type, body.media_base64)
    return {"message": "Story created successfully", "story": story}


@router.get("/following")
async def following_stories(current_user: dict = Depends(get_current_user), service: StoryService = Depends(get_story_service)):
    return {"stories_by_user": await service.following_stories(current_user["_id"])}


@router.get("/user/{user_id}")
async def user_stories(user_id: str, current_user: dict = Depends(get_current_user), service: StoryService = Depends(get_story_service)):
    return {"stories": await service.user_stories(user_id)}


@router.delete("/{story_id}")
async def delete_story(story_id: str, current_user: dict = Depends(get_current_user), service: StoryService = Depends(get_story_service)):
    await service.delete_story(current_user["_id"], story_id)
    return {"message": "Story deleted successfully"}
