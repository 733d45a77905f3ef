from fastapi import APIRouter, Depends, Response

from pulse.database.connection import mongo_db_dependency
from pulse.utils.errors import NotFound
from pulse.utils.storage import BUCKETS, MediaStorage


# mounted under Settings.storage_path_prefix
router = APIRouter(tags=["storage"])


@router.get("/{bucket}/{storage_path:path}")
async def download_object(bucket: str, storage_path: str, db = Depends(mongo_db_dependency)):
    if bucket not in BUCKETS:
        raise NotFound(f"Unknown bucket: {bucket}", error="Bucket not found")
    found = await MediaStorage(db).download(bucket, storage_path)
    if found is None:
        raise NotFound("Object does not exist", error="Object not found")
    data, content_type = found
    return Response(content=data, media_type=content_type, headers={"Cache-Control": "public, max-age=3600"})
