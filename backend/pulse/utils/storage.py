"""GridFS-backed media storage with public URLs built from a fixed base path."""

import logging
import time
from typing import Optional, Tuple

from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorGridFSBucket

from pulse.config import get_settings


logger = logging.getLogger(__name__)

BUCKETS = ("posts", "profiles", "stories", "reels")

MEDIA_TYPES = {
    "image": ("jpg", "image/jpeg"),
    "video": ("mp4", "video/mp4"),
}


def build_storage_path(user_id: str, kind: str, media: str) -> Tuple[str, str]:
    ext, content_type = MEDIA_TYPES[media]
    file_name = f"{kind}_{int(time.time() * 1000)}_{user_id}.{ext}"
    return f"{user_id}/{file_name}", content_type


def build_public_url(bucket: str, storage_path: str) -> str:
    settings = get_settings()
    return f"{settings.public_base_url.rstrip('/')}{settings.storage_path_prefix}/{bucket}/{storage_path}"


def storage_path_from_url(bucket: str, url: Optional[str]) -> Optional[str]:
    """Inverse of ``build_public_url``; None for URLs this store did not issue."""
    prefix = build_public_url(bucket, "")
    if not url or not url.startswith(prefix):
        return None
    return url[len(prefix):] or None


class MediaStorage:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    def _bucket(self, bucket: str) -> AsyncIOMotorGridFSBucket:
        if bucket not in BUCKETS:
            raise ValueError(f"Unknown storage bucket: {bucket}")
        return AsyncIOMotorGridFSBucket(self._db, bucket_name=bucket)

    async def upload(self, bucket: str, storage_path: str, data: bytes, content_type: str) -> str:
        fs = self._bucket(bucket)
        # upsert: replace any previous file stored under the same path
        async for existing in fs.find({"filename": storage_path}):
            await fs.delete(existing["_id"])
        await fs.upload_from_stream(storage_path, data, metadata={"contentType": content_type})
        logger.info("Stored %d bytes at %s/%s", len(data), bucket, storage_path)
        return build_public_url(bucket, storage_path)

    async def upload_media(self, bucket: str, user_id: str, kind: str, media: str, data: bytes) -> str:
        storage_path, content_type = build_storage_path(user_id, kind, media)
        return await self.upload(bucket, storage_path, data, content_type)

    async def download(self, bucket: str, storage_path: str) -> Optional[Tuple[bytes, str]]:
        fs = self._bucket(bucket)
        try:
            stream = await fs.open_download_stream_by_name(storage_path)
        except NoFile:
            return None
        content_type = (stream.metadata or {}).get("contentType", "application/octet-stream")
        return await stream.read(), content_type

    async def delete(self, bucket: str, storage_path: str) -> int:
        fs = self._bucket(bucket)
        removed = 0
        async for existing in fs.find({"filename": storage_path}):
            await fs.delete(existing["_id"])
            removed += 1
        if removed:
            logger.info("Removed %s/%s", bucket, storage_path)
        return removed

    async def delete_url(self, bucket: str, url: Optional[str]) -> int:
        storage_path = storage_path_from_url(bucket, url)
        if storage_path is None:
            return 0
        return await self.delete(bucket, storage_path)
