"""
Configuration module for myrc.
Stores all server settings, overridable through environment variables.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional


class Config:
    """Application configuration class."""

    # Server Configuration
    DEFAULT_HOST = os.environ.get("MYRC_HOST", "0.0.0.0")
    DEFAULT_PORT = int(os.environ.get("MYRC_PORT", "8888"))

    # Client Configuration
    DEFAULT_CLIENT_HOST = os.environ.get("MYRC_CLIENT_HOST", "localhost")

    # Longest accepted line in bytes (asyncio stream limit)
    MAX_LINE_LENGTH = int(os.environ.get("MYRC_MAX_LINE", str(64 * 1024)))

    # Seconds a write to one client may block before that client is dropped
    SEND_TIMEOUT = float(os.environ.get("MYRC_SEND_TIMEOUT", "10"))

    # Logging
    LOG_LEVEL = os.environ.get("MYRC_LOG_LEVEL", "INFO")
    ENVIRONMENT = os.environ.get("MYRC_ENV", "development")

    @classmethod
    def get_config(cls) -> Dict[str, Any]:
        """Get all configuration values as a dictionary."""
        return {
            "DEFAULT_HOST": cls.DEFAULT_HOST,
            "DEFAULT_PORT": cls.DEFAULT_PORT,
            "DEFAULT_CLIENT_HOST": cls.DEFAULT_CLIENT_HOST,
            "MAX_LINE_LENGTH": cls.MAX_LINE_LENGTH,
            "SEND_TIMEOUT": cls.SEND_TIMEOUT,
            "LOG_LEVEL": cls.LOG_LEVEL,
            "ENVIRONMENT": cls.ENVIRONMENT,
        }


@dataclass
class ServerSettings:
    """
    Per-instance settings handed to a ChatServer.

    Attributes:
        host: Address to bind to
        port: Port to listen on (0 picks a free port)
        max_line_length: Longest accepted client line in bytes
        send_timeout: Seconds a write to one client may block
    """
    host: str = Config.DEFAULT_HOST
    port: int = Config.DEFAULT_PORT
    max_line_length: int = Config.MAX_LINE_LENGTH
    send_timeout: Optional[float] = Config.SEND_TIMEOUT


# Create config instance
config = Config()
