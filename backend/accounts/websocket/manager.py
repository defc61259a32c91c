from fastapi import WebSocket
from typing import List
import asyncio
import logging

from accounts.models.rfid import RfidRead

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Pushes card reads from the RFID reader bridge to connected dashboards."""

    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"RFID listener connected. Total listeners: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
        logger.info(f"RFID listener disconnected. Total listeners: {len(self.active_connections)}")

    async def broadcast_read(self, read: RfidRead):
        message = {"type": "rfid_read", "data": read.model_dump(by_alias=True)}
        await asyncio.gather(
            *(self._safe_send(connection, message) for connection in list(self.active_connections)),
            return_exceptions=True
        )

    async def _safe_send(self, connection: WebSocket, message: dict):
        try:
            await connection.send_json(message)
        except Exception as e:
            logger.warning(f"Dropping RFID listener after send failure: {str(e)}")
            self.disconnect(connection)
