import asyncio
import logging
from typing import Optional

import jwt
from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect, status

from pulse.database.connection import mongo_db_dependency
from pulse.repositories.message_repository import MessageRepository
from pulse.repositories.profile_repository import ProfileRepository
from pulse.schemas.message import MessageCreate
from pulse.services.chat_service import ChatService
from pulse.utils.dependencies import get_current_user
from pulse.utils.realtime_bus import get_bus
from pulse.utils.security import decode_access_token
from pulse.utils.validation import clamp_pagination, require_uuid
from pulse.utils.websocket_manager import deliver, manager


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["chat"])


def get_chat_service(request: Request, db = Depends(mongo_db_dependency)) -> ChatService:
    msg_repo = MessageRepository(db, request.app.state.read_state)
    return ChatService(msg_repo, ProfileRepository(db), notify=deliver)


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket):
    # JWT in query string: ?token=...
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4401)
        return
    try:
        user_id = decode_access_token(token)["sub"]
    except jwt.PyJWTError:
        await websocket.close(code=4401)
        return

    await manager.connect(user_id, websocket)
    bus = await get_bus()
    subscriber = None
    sub_task = None
    if getattr(bus, "enabled", False):
        subscriber = await bus.subscribe(f"user:{user_id}", websocket.send_text)
        sub_task = asyncio.create_task(subscriber.run())
    try:
        while True:
            # inbound frames are only keep-alives; sending goes through POST /api/messages
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.debug("Socket closed for %s", user_id)
    finally:
        manager.disconnect(user_id, websocket)
        if sub_task is not None:
            sub_task.cancel()
            await asyncio.gather(sub_task, return_exceptions=True)
        if subscriber is not None:
            await subscriber.cancel()


@router.get("/users")
async def list_chat_users(limit: Optional[int] = None, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    limit, _ = clamp_pagination(limit, 0, default=100, maximum=500)
    return {"users": await service.list_chat_users(current_user["_id"], limit)}


@router.get("/conversations")
async def list_conversations(
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    limit, offset = clamp_pagination(limit, offset)
    return await service.list_conversations(current_user["_id"], limit, offset)


@router.get("")
async def get_thread(
    other_user_id: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    limit, offset = clamp_pagination(limit, offset)
    return await service.get_thread(current_user["_id"], other_user_id, limit, offset)


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_message(body: MessageCreate, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    message = await service.send_message(current_user["_id"], body.receiver_id, body.message, body.message_type)
    return {"message": "Message sent successfully", "data": message}


@router.put("/{message_id}/read")
async def mark_read(message_id: str, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    require_uuid(message_id, "message ID")
    if not await service.mark_read(current_user["_id"], message_id):
        return {"message": "Message already marked as read"}
    return {"message": "Message marked as read"}
