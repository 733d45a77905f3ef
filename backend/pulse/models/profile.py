from datetime import datetime
from typing import Optional, TypedDict


class ProfileDocument(TypedDict, total=False):
    # _id is shared with the matching users document
    _id: str
    email: str
    username: Optional[str]
    full_name: Optional[str]
    bio: Optional[str]
    profile_image_url: Optional[str]
    followers_count: int
    following_count: int
    posts_count: int
    created_at: datetime
    updated_at: datetime
