"""Server settings read from the environment"""

import os
from typing import List

from pydantic import BaseModel, Field


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


class ServerSettings(BaseModel):
    """Process-level settings for the match server."""

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    log_level: str = "info"
    reload: bool = False
    report_rejections: bool = Field(
        default=False,
        description="Send an ERROR frame back when an action is rejected"
    )
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "ServerSettings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", 8080)),
            log_level=os.getenv("LOG_LEVEL", "info").lower(),
            reload=_env_flag("RELOAD"),
            report_rejections=_env_flag("REPORT_REJECTIONS"),
            cors_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
        )
