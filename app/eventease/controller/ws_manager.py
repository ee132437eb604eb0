import logging
from typing import List
from fastapi import WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, message: dict):
        payload = jsonable_encoder(message)
        for connection in list(self.active_connections):
            try:
                await connection.send_json(payload)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.warning(f"Dropping websocket after failed send: {e}")
                self.disconnect(connection)


# Separate managers for different types of updates
event_manager = ConnectionManager()
registration_manager = ConnectionManager()
