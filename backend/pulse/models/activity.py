from datetime import datetime
from typing import Literal, Optional, TypedDict


ActivityType = Literal["like", "comment", "follow", "mention"]
EventType = Literal["like", "comment", "follow"]


class ActivityDocument(TypedDict, total=False):
    """Stored activity row (``POST /api/activities``)."""

    _id: str
    user_id: str
    target_user_id: str
    type: ActivityType
    post_id: Optional[str]
    comment_text: Optional[str]
    created_at: datetime


class ActivityEvent(TypedDict):
    """Feed entry merged from likes, comments and follows; never persisted."""

    id: str
    user_id: str
    type: EventType
    post_id: Optional[str]
    comment_text: Optional[str]
    created_at: datetime
    profiles: Optional[dict]
    posts: Optional[dict]
