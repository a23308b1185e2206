"""ASGI entry point for the Ride the Bus match server"""

import logging

from .config import ServerSettings
from .ws.server import create_app

settings = ServerSettings.from_env()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app(settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
