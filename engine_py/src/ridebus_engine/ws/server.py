"""
FastAPI WebSocket server for Ride the Bus.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from starlette.websockets import WebSocketState

from ..config import ServerSettings
from ..registry import RoomRegistry
from .handler import ConnectionHandler

logger = logging.getLogger(__name__)


class WebSocketConnection:
    """Adapts a FastAPI WebSocket to the connection interface the core expects."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.id = str(uuid.uuid4())[:8]

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str):
        await self.websocket.send_text(data)

    async def close(self, code: int = 1000):
        if self.is_open:
            await self.websocket.close(code)


def create_app(settings: Optional[ServerSettings] = None, registry: Optional[RoomRegistry] = None) -> FastAPI:
    """Build the FastAPI app with its own room registry."""
    settings = settings or ServerSettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Ride the Bus match server starting")
        yield
        await app.state.registry.close()
        logger.info("Ride the Bus match server stopped")

    app = FastAPI(title="Ride the Bus Match Server", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry or RoomRegistry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": "Ride the Bus Match Server", "version": "1.0.0"}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        registry: RoomRegistry = app.state.registry
        return {
            "status": "healthy",
            "rooms": len(registry),
            "connections": registry.connection_count(),
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Main WebSocket endpoint."""
        await websocket.accept()
        connection = WebSocketConnection(websocket)
        handler = ConnectionHandler(connection, app.state.registry, settings.report_rejections)
        logger.info(f"WebSocket connection {connection.id} accepted")

        try:
            while True:
                raw_data = await websocket.receive_text()
                await handler.handle_text(raw_data)
        except WebSocketDisconnect:
            logger.info(f"WebSocket {connection.id} disconnected")
        except Exception as e:
            logger.error(f"WebSocket error on {connection.id}: {e}")
        finally:
            await handler.handle_close()

    return app
