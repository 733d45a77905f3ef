from datetime import datetime
from typing import Optional, TypedDict


class ReelDocument(TypedDict, total=False):
    _id: str
    user_id: str
    username: Optional[str]
    video_url: str
    caption: Optional[str]
    music: Optional[str]
    likes_count: int
    comments_count: int
    created_at: datetime
    updated_at: datetime


class ReelLikeDocument(TypedDict, total=False):
    _id: str
    reel_id: str
    user_id: str
    created_at: datetime


class ReelCommentDocument(TypedDict, total=False):
    _id: str
    reel_id: str
    user_id: str
    username: Optional[str]
    comment: str
    created_at: datetime
