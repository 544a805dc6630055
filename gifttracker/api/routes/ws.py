import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from gifttracker.core.config import settings
from gifttracker.realtime.manager import manager

router = APIRouter(tags=["ws"])
logger = logging.getLogger("gifttracker.ws")


@router.websocket("/ws")
async def household_ws(websocket: WebSocket) -> None:
    await websocket.accept()
    await manager.connect(websocket)
    ping_interval = settings.ws_ping_interval_seconds
    send_timeout = max(1, settings.ws_ping_timeout_seconds - ping_interval)

    try:
        while True:
            try:
                # Any client message resets the idle timer; content is ignored.
                await asyncio.wait_for(websocket.receive_text(), timeout=ping_interval)
            except asyncio.TimeoutError:
                try:
                    await asyncio.wait_for(
                        websocket.send_json({"type": "ping"}),
                        timeout=send_timeout,
                    )
                except (asyncio.TimeoutError, RuntimeError):
                    logger.info("WS idle timeout, closing")
                    break
    except WebSocketDisconnect:
        logger.info("WS disconnected")
    finally:
        manager.disconnect(websocket)
