"""
API Routers for the Classroom Recording API
"""

from .recording import router as recording_router
from .token import router as token_router
from .chat import router as chat_router
from .attendance import router as attendance_router

__all__ = ["recording_router", "token_router", "chat_router", "attendance_router"]
