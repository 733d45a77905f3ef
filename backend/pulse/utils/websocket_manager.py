import logging
from typing import Dict, List

from fastapi import WebSocket


logger = logging.getLogger(__name__)


class ConnectionManager:

    def __init__(self) -> None:
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.setdefault(user_id, []).append(websocket)

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        connections = self.active_connections.get(user_id)
        if not connections:
            return
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            del self.active_connections[user_id]

    async def send_personal_message(self, receiver_id: str, message: str) -> None:
        for conn in list(self.active_connections.get(receiver_id, [])):
            await conn.send_text(message)


manager = ConnectionManager()


async def deliver(receiver_id: str, payload: str) -> None:
    """Fan a payload out to the receiver: via Redis when enabled, else to local sockets."""
    from pulse.utils.realtime_bus import get_bus

    bus = await get_bus()
    if getattr(bus, "enabled", False):
        await bus.publish(f"user:{receiver_id}", payload)
    else:
        await manager.send_personal_message(receiver_id, payload)
