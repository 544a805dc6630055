import logging
from collections.abc import Iterable

from fastapi import WebSocket


class HouseholdConnectionManager:
    def __init__(self) -> None:
        self._connections: list[WebSocket] = []

    @property
    def active_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        self._connections.append(websocket)
        logger.info("WS connect total=%s", len(self._connections))

    def disconnect(self, websocket: WebSocket) -> None:
        before = len(self._connections)
        self._connections = [ws for ws in self._connections if ws is not websocket]
        if len(self._connections) != before:
            logger.info("WS disconnect total=%s", len(self._connections))

    async def broadcast(self, event_type: str, entity: str, ids: Iterable[str]) -> None:
        if not self._connections:
            return

        message = {"type": event_type, "entity": entity, "ids": [str(item) for item in ids]}
        to_remove: list[WebSocket] = []
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
            except Exception:
                logger.exception("WS broadcast failed type=%s", event_type)
                to_remove.append(websocket)

        if to_remove:
            self._connections = [ws for ws in self._connections if ws not in to_remove]
            logger.info("WS pruned total=%s", len(self._connections))


logger = logging.getLogger("gifttracker.ws")
manager = HouseholdConnectionManager()
