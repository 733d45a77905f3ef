from datetime import datetime
from typing import Literal, Optional, TypedDict


PostType = Literal["instagram", "twitter"]


class PostDocument(TypedDict, total=False):
    _id: str
    user_id: str
    username: Optional[str]
    caption: Optional[str]
    image_url: Optional[str]
    video_url: Optional[str]
    post_type: PostType
    likes_count: int
    comments_count: int
    created_at: datetime
    updated_at: datetime


class LikeDocument(TypedDict, total=False):
    _id: str
    post_id: str
    user_id: str
    created_at: datetime


class CommentDocument(TypedDict, total=False):
    _id: str
    post_id: str
    user_id: str
    username: Optional[str]
    comment: str
    created_at: datetime


class BookmarkDocument(TypedDict, total=False):
    _id: str
    post_id: str
    user_id: str
    created_at: datetime
