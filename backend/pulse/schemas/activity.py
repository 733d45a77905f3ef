from typing import Optional

from pydantic import BaseModel


class ActivityCreate(BaseModel):

    type: str
    target_user_id: Optional[str] = None
    post_id: Optional[str] = None
    comment_text: Optional[str] = None
