from datetime import datetime
from typing import Literal, Optional, TypedDict


MessageType = Literal["text", "image", "video", "post_reference"]


class MessageDocument(TypedDict, total=False):
    _id: str
    sender_id: str
    receiver_id: str
    message: str
    message_type: MessageType
    created_at: datetime
    # read state: exactly one of these is used, see repositories.read_state
    read_at: Optional[datetime]
    is_read: bool
