"""Index definitions for every collection.

Uniqueness and idempotence of social actions live here: a duplicate like,
follow or bookmark fails with ``DuplicateKeyError`` at insert time.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING


logger = logging.getLogger(__name__)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db["users"].create_index([("email", ASCENDING)], unique=True)
    # profiles created without a username store null, which must not collide
    await db["profiles"].create_index(
        [("username", ASCENDING)],
        unique=True,
        partialFilterExpression={"username": {"$type": "string"}},
    )
    await db["profiles"].create_index([("followers_count", DESCENDING)])

    await db["posts"].create_index([("created_at", DESCENDING)])
    await db["posts"].create_index([("user_id", ASCENDING), ("post_type", ASCENDING), ("created_at", DESCENDING)])

    await db["likes"].create_index([("post_id", ASCENDING), ("user_id", ASCENDING)], unique=True)
    await db["likes"].create_index([("created_at", DESCENDING)])
    await db["comments"].create_index([("post_id", ASCENDING), ("created_at", ASCENDING)])
    await db["bookmarks"].create_index([("user_id", ASCENDING), ("post_id", ASCENDING)], unique=True)

    await db["follows"].create_index([("follower_id", ASCENDING), ("following_id", ASCENDING)], unique=True)
    await db["follows"].create_index([("following_id", ASCENDING), ("created_at", DESCENDING)])

    await db["messages"].create_index([("sender_id", ASCENDING), ("receiver_id", ASCENDING), ("created_at", DESCENDING)])
    await db["messages"].create_index([("receiver_id", ASCENDING), ("created_at", DESCENDING)])

    await db["stories"].create_index([("user_id", ASCENDING), ("expires_at", DESCENDING)])

    await db["reels"].create_index([("created_at", DESCENDING)])
    await db["reel_likes"].create_index([("reel_id", ASCENDING), ("user_id", ASCENDING)], unique=True)
    await db["reel_comments"].create_index([("reel_id", ASCENDING), ("created_at", ASCENDING)])

    await db["activities"].create_index([("target_user_id", ASCENDING), ("created_at", DESCENDING)])
    logger.info("MongoDB indexes ensured")
