"""
Configuration file for the Classroom Recording API
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration class for the recording backend"""

    # LiveKit Configuration
    LIVEKIT_URL = os.getenv("LIVEKIT_URL", "ws://localhost:7880")
    LIVEKIT_API_KEY = os.getenv("LIVEKIT_API_KEY", os.getenv("LK_API_KEY", "devkey"))
    LIVEKIT_API_SECRET = os.getenv("LIVEKIT_API_SECRET", os.getenv("LK_API_SECRET", "secret"))

    # Egress Configuration
    EGRESS_REQUEST_TIMEOUT = int(os.getenv("EGRESS_REQUEST_TIMEOUT", "300"))  # seconds
    EGRESS_MIN_ACTIVE_MS = int(os.getenv("EGRESS_MIN_ACTIVE_MS", "5000"))
    EGRESS_STOP_MAX_WAIT_MS = int(os.getenv("EGRESS_STOP_MAX_WAIT_MS", "5000"))
    EGRESS_CLEANUP_INTERVAL_MS = int(os.getenv("EGRESS_CLEANUP_INTERVAL_MS", str(30 * 60 * 1000)))
    MAX_EGRESS_DURATION_MINUTES = int(os.getenv("MAX_EGRESS_DURATION_MINUTES", "180"))
    FILE_START_MAX_WAIT_MS = int(os.getenv("FILE_START_MAX_WAIT_MS", "30000"))
    FILE_START_POLL_INTERVAL_MS = int(os.getenv("FILE_START_POLL_INTERVAL_MS", "300"))
    RECORDING_OUTPUT_DIR = os.getenv("RECORDING_OUTPUT_DIR", "/out")

    # MongoDB Configuration
    MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DATABASE = os.getenv("MONGODB_DATABASE", "classroom")

    # API Configuration
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", os.getenv("PORT", "3001")))

    # Logging Configuration
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_TO_FILE = _env_bool("LOG_TO_FILE", "true")
    LOG_DIR = os.getenv("LOG_DIR", "logs")

    @classmethod
    def livekit_http_url(cls) -> str:
        """Room and egress services speak HTTP(S); convert ws/wss URLs."""
        if cls.LIVEKIT_URL.startswith("ws"):
            return "http" + cls.LIVEKIT_URL[len("ws"):]
        return cls.LIVEKIT_URL

    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.LIVEKIT_URL:
            raise ValueError("LIVEKIT_URL is required but not set")
        if not cls.LIVEKIT_API_KEY:
            raise ValueError("LIVEKIT_API_KEY is required but not set")
        if not cls.LIVEKIT_API_SECRET:
            raise ValueError("LIVEKIT_API_SECRET is required but not set")
        if cls.EGRESS_REQUEST_TIMEOUT <= 0:
            raise ValueError("EGRESS_REQUEST_TIMEOUT must be positive")
        if cls.EGRESS_CLEANUP_INTERVAL_MS <= 0:
            raise ValueError("EGRESS_CLEANUP_INTERVAL_MS must be positive")
        if cls.EGRESS_MIN_ACTIVE_MS < 0:
            raise ValueError("EGRESS_MIN_ACTIVE_MS must not be negative")


# Create a singleton config instance
config = Config()
