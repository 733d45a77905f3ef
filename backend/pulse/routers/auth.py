from fastapi import APIRouter, Depends, status

from pulse.database.connection import mongo_db_dependency
from pulse.repositories.profile_repository import ProfileRepository
from pulse.repositories.user_repository import UserRepository
from pulse.schemas.user import UserCreate, UserLogin
from pulse.services.user_service import UserService
from pulse.utils.dependencies import get_current_user


router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_user_service(db = Depends(mongo_db_dependency)) -> UserService:
    return UserService(UserRepository(db), ProfileRepository(db))


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(user: UserCreate, service: UserService = Depends(get_user_service)):
    return await service.register_user(user.email, user.password, user.username, user.full_name)


@router.post("/login")
async def login(credentials: UserLogin, service: UserService = Depends(get_user_service)):
    return await service.authenticate_user(credentials.email, credentials.password)


@router.get("/me")
async def read_me(current_user: dict = Depends(get_current_user), service: UserService = Depends(get_user_service)):
    return {"user": await service.get_me(current_user["_id"])}
