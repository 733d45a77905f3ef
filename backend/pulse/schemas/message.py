from typing import Optional

from pydantic import BaseModel


class MessageCreate(BaseModel):

    receiver_id: Optional[str] = None
    message: Optional[str] = None
    message_type: str = "text"
