import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from pymongo.errors import PyMongoError

from pulse.repositories.message_repository import MessageRepository
from pulse.repositories.profile_repository import ProfileRepository
from pulse.repositories.read_state import ReadState
from pulse.utils.documents import new_id, utcnow
from pulse.utils.errors import Forbidden, NotFound, ValidationFailed
from pulse.utils.validation import is_uuid, pagination_meta


logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
MESSAGE_TYPES = ("text", "image", "video", "post_reference")

Notifier = Callable[[str, str], Awaitable[None]]


def counterpart_of(message: Dict[str, Any], user_id: str) -> str:
    return message["receiver_id"] if message["sender_id"] == user_id else message["sender_id"]


def latest_per_counterpart(messages: Iterable[Dict[str, Any]], user_id: str) -> List[Tuple[str, Dict[str, Any]]]:
    """Collapse a newest-first message stream to one (counterpart, last message) pair per correspondent.

    The first message seen for a counterpart is its most recent one, so the
    output keeps the input's recency order.
    """
    latest: Dict[str, Dict[str, Any]] = {}
    for message in messages:
        other = counterpart_of(message, user_id)
        if other not in latest:
            latest[other] = message
    return list(latest.items())


def normalize_message(row: Dict[str, Any], read_state: ReadState, profiles: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    sender = profiles.get(row["sender_id"]) or {}
    receiver = profiles.get(row["receiver_id"]) or {}
    return {
        "id": row["_id"],
        "sender_id": row["sender_id"],
        "receiver_id": row["receiver_id"],
        "message": row.get("message"),
        "message_type": row.get("message_type") or "text",
        "created_at": row.get("created_at"),
        "is_read": read_state.is_read(row),
        "sender_username": sender.get("username") or "Unknown",
        "sender_profile_image_url": sender.get("profile_image_url"),
        "receiver_username": receiver.get("username") or "Unknown",
        "receiver_profile_image_url": receiver.get("profile_image_url"),
    }


class ChatService:

    def __init__(
        self,
        message_repo: MessageRepository,
        profile_repo: ProfileRepository,
        notify: Optional[Notifier] = None,
    ) -> None:
        self._message_repo = message_repo
        self._profile_repo = profile_repo
        self._notify = notify

    @property
    def read_state(self) -> ReadState:
        return self._message_repo.read_state

    async def list_chat_users(self, user_id: str, limit: int) -> List[Dict[str, Any]]:
        users = await self._profile_repo.list_others(user_id, limit)
        return [
            {
                "id": u["_id"],
                "email": u.get("email"),
                "username": u.get("username"),
                "full_name": u.get("full_name"),
                "profile_image_url": u.get("profile_image_url"),
                "created_at": u.get("created_at"),
            }
            for u in users
        ]

    async def get_thread(self, user_id: str, other_user_id: Optional[str], limit: int, offset: int) -> Dict[str, Any]:
        if not other_user_id:
            raise ValidationFailed("other_user_id is required")
        if not is_uuid(other_user_id):
            raise ValidationFailed("other_user_id must be a valid UUID", error="Invalid user ID")
        other = await self._profile_repo.get(other_user_id)
        if not other:
            raise NotFound("The other user does not exist", error="User not found")

        messages = await self._message_repo.list_between(user_id, other_user_id, limit, offset)
        try:
            total = await self._message_repo.count_between(user_id, other_user_id)
        except PyMongoError:
            logger.exception("Message count failed for %s/%s", user_id, other_user_id)
            total = 0
        try:
            await self._message_repo.mark_read_from(other_user_id, user_id)
        except PyMongoError:
            logger.exception("Marking messages from %s to %s as read failed", other_user_id, user_id)

        profiles = await self._profile_repo.get_many([user_id, other_user_id])
        items = [normalize_message(m, self.read_state, profiles) for m in reversed(messages)]
        return {
            "messages": items,
            "other_user": {"id": other["_id"], "username": other.get("username"), "profile_image_url": other.get("profile_image_url")},
            "pagination": {
                "limit": limit,
                "offset": offset,
                "total_count": total,
                "has_more": len(messages) == limit,
            },
        }

    async def send_message(self, sender_id: str, receiver_id: Optional[str], text: Optional[str], message_type: str = "text") -> Dict[str, Any]:
        if not receiver_id or not text:
            raise ValidationFailed("receiver_id and message are required")
        text = text.strip()
        if not text:
            raise ValidationFailed("Message text is required and cannot be empty")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationFailed(f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters")
        if message_type not in MESSAGE_TYPES:
            raise ValidationFailed("message_type must be text, image, video, or post_reference")
        if not is_uuid(receiver_id):
            raise ValidationFailed("receiver_id must be a valid UUID", error="Invalid receiver ID")
        if receiver_id == sender_id:
            raise ValidationFailed("Cannot send message to yourself")
        if not await self._profile_repo.exists(receiver_id):
            raise NotFound("The receiver does not exist", error="Receiver not found")

        saved = await self._message_repo.save_message(
            {
                "_id": new_id(),
                "sender_id": sender_id,
                "receiver_id": receiver_id,
                "message": text,
                "message_type": message_type,
                "created_at": utcnow(),
            }
        )
        profiles = await self._profile_repo.get_many([sender_id, receiver_id])
        data = normalize_message(saved, self.read_state, profiles)
        await self._push(receiver_id, data)
        return data

    async def _push(self, receiver_id: str, data: Dict[str, Any]) -> None:
        if self._notify is None:
            return
        payload = json.dumps({"type": "message", "data": data}, default=str)
        try:
            await self._notify(receiver_id, payload)
        except Exception:
            # live delivery is optional; the message is already stored
            logger.exception("Realtime delivery to %s failed", receiver_id)

    async def _unread_or_zero(self, sender_id: str, receiver_id: str) -> int:
        try:
            return await self._message_repo.count_unread(sender_id, receiver_id)
        except PyMongoError:
            logger.exception("Unread count failed for %s -> %s", sender_id, receiver_id)
            return 0

    async def list_conversations(self, user_id: str, limit: int, offset: int) -> Dict[str, Any]:
        messages = await self._message_repo.list_for_user(user_id)
        summaries = latest_per_counterpart(messages, user_id)
        page = summaries[offset:offset + limit]

        counterparts = [other for other, _ in page]
        profiles = await self._profile_repo.get_many(counterparts)
        unread = await asyncio.gather(*(self._unread_or_zero(other, user_id) for other in counterparts))

        conversations = []
        for (other, message), unread_count in zip(page, unread):
            profile = profiles.get(other) or {}
            conversations.append(
                {
                    "other_user_id": other,
                    "other_username": profile.get("username") or "Unknown",
                    "other_profile_image_url": profile.get("profile_image_url"),
                    "last_message": {
                        "id": message["_id"],
                        "message": message.get("message"),
                        "message_type": message.get("message_type") or "text",
                        "created_at": message.get("created_at"),
                        "sender_id": message["sender_id"],
                    },
                    "unread_count": unread_count,
                }
            )
        return {
            "conversations": conversations,
            "pagination": pagination_meta(limit, offset, len(conversations), len(summaries)),
        }

    async def mark_read(self, user_id: str, message_id: str) -> bool:
        """Returns False when the message was already read."""
        message = await self._message_repo.get(message_id)
        if not message:
            raise NotFound("Message does not exist", error="Message not found")
        if message["receiver_id"] != user_id:
            raise Forbidden("You can only mark messages as read if you are the receiver")
        if self.read_state.is_read(message):
            return False
        await self._message_repo.mark_read(message_id)
        return True
