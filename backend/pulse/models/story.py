from datetime import datetime
from typing import Optional, TypedDict


class StoryDocument(TypedDict, total=False):
    _id: str
    user_id: str
    username: Optional[str]
    image_url: Optional[str]
    video_url: Optional[str]
    created_at: datetime
    expires_at: datetime
