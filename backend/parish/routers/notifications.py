"""WebSocket transport for reservation notifications."""
import asyncio
import logging
from typing import Optional
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from parish.auth import Role
from parish.notifications import hub

logger = logging.getLogger(__name__)
router = APIRouter()

SUBSCRIBED = "SUBSCRIBED"


@router.websocket("/ws")
async def notifications_ws(
    websocket: WebSocket,
    user_id: str = Query(...),
    role: str = Query(Role.parishioner.value),
):
    """Push reservation events to one connected user.

    The first message is ``{"type": "SUBSCRIBED"}``; events broadcast before it
    are not delivered. The engine broadcasts from worker threads, so delivery
    hops onto this connection's event loop through a queue.
    """
    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    token: Optional[int] = None
    sender: Optional[asyncio.Task] = None

    def deliver(message: dict) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, message)

    async def pump() -> None:
        while True:
            message = await queue.get()
            await websocket.send_json(message)

    try:
        token = hub.subscribe(user_id, role.upper(), deliver)
        await websocket.send_json({"type": SUBSCRIBED, "data": {"userId": user_id}})
        logger.info("Notification socket opened for user %s (%s)", user_id, role)
        sender = asyncio.create_task(pump())
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Notification socket closed for user %s", user_id)
    finally:
        if token is not None:
            hub.unsubscribe(token)
        if sender is not None:
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Notification sender for user %s failed", user_id)
