from fastapi import APIRouter, Depends

from pulse.database.connection import mongo_db_dependency
from pulse.repositories.profile_repository import ProfileRepository
from pulse.repositories.user_repository import UserRepository
from pulse.schemas.profile import ProfileImageUpload, ProfileUpdate
from pulse.services.profile_service import ProfileService
from pulse.utils.dependencies import get_current_user
from pulse.utils.storage import MediaStorage


router = APIRouter(prefix="/api/profiles", tags=["profiles"])


def get_profile_service(db = Depends(mongo_db_dependency)) -> ProfileService:
    return ProfileService(ProfileRepository(db), UserRepository(db), MediaStorage(db))


@router.get("/me")
async def get_my_profile(current_user: dict = Depends(get_current_user), service: ProfileService = Depends(get_profile_service)):
    return await service.get_me(current_user["_id"])


@router.put("/me")
async def update_my_profile(body: ProfileUpdate, current_user: dict = Depends(get_current_user), service: ProfileService = Depends(get_profile_service)):
    profile = await service.update_me(current_user["_id"], body.username, body.full_name, body.bio)
    return {"message": "Profile updated successfully", "profile": profile}


@router.post("/me/image")
async def upload_profile_image(body: ProfileImageUpload, current_user: dict = Depends(get_current_user), service: ProfileService = Depends(get_profile_service)):
    result = await service.upload_image(current_user["_id"], body.image_base64)
    return {"message": "Profile image uploaded successfully", **result}


@router.get("/{user_id}")
async def get_profile(user_id: str, service: ProfileService = Depends(get_profile_service)):
    return {"profile": await service.get_public(user_id)}
