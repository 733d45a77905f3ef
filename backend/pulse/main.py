import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pulse.config import get_settings
from pulse.database.connection import close_mongo_connection, connect_to_mongo, get_database
from pulse.database.indexes import ensure_indexes
from pulse.repositories.read_state import read_state_for
from pulse.routers.activities import router as activities_router
from pulse.routers.auth import router as auth_router
from pulse.routers.bookmarks import router as bookmarks_router
from pulse.routers.comments import router as comments_router
from pulse.routers.follows import router as follows_router
from pulse.routers.messages import router as messages_router
from pulse.routers.posts import router as posts_router
from pulse.routers.profiles import router as profiles_router
from pulse.routers.reels import router as reels_router
from pulse.routers.stories import router as stories_router
from pulse.routers.storage import router as storage_router
from pulse.utils.errors import register_exception_handlers
from pulse.utils.logging_config import configure_logging
from pulse.utils.realtime_bus import close_bus


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):

    configure_logging()
    settings = get_settings()
    db = await connect_to_mongo()
    await ensure_indexes(db)
    app.state.read_state = read_state_for(settings.message_read_state)
    logger.info("%s started (%s, read state: %s)", settings.app_name, settings.environment, settings.message_read_state)
    try:
        yield
    finally:
        await close_bus()
        await close_mongo_connection()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(profiles_router)
    app.include_router(posts_router)
    app.include_router(comments_router)
    app.include_router(bookmarks_router)
    app.include_router(follows_router)
    app.include_router(messages_router)
    app.include_router(stories_router)
    app.include_router(reels_router)
    app.include_router(activities_router)
    app.include_router(storage_router, prefix=settings.storage_path_prefix)

    @app.get("/")
    async def root():
        return {"message": f"{settings.app_name} is running"}

    @app.get("/health")
    async def health():
        db = get_database()
        await db.command("ping")
        return {"status": "ok", "environment": settings.environment}

    return app


app = create_app()
