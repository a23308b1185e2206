#!/usr/bin/env python3
"""Startup script for the Ride the Bus match server"""

import uvicorn

from .config import ServerSettings


def main():
    settings = ServerSettings.from_env()

    print(f"Starting Ride the Bus match server on {settings.host}:{settings.port}")
    print(f"Health check available at: http://{settings.host}:{settings.port}/health")
    print(f"WebSocket endpoint: ws://{settings.host}:{settings.port}/ws")

    uvicorn.run(
        "ridebus_engine.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
