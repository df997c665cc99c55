"""
Centralized Pydantic models for the Classroom Recording API
"""

from .model import (
    # Common models
    ErrorResponse,

    # Recording models
    StartRecordingRequest,
    StartRecordingResponse,
    StopRecordingRequest,
    StopRecordingResponse,
    RecordingStatusResponse,
    EgressListResponse,

    # Token models
    TokenRequest,
    TokenResponse,

    # Chat models
    ChatAttachment,
    ChatMessageRequest,
    ChatMessage,

    # Attendance models
    AttendanceRequest,
)

__all__ = [
    # Common
    "ErrorResponse",

    # Recording
    "StartRecordingRequest",
    "StartRecordingResponse",
    "StopRecordingRequest",
    "StopRecordingResponse",
    "RecordingStatusResponse",
    "EgressListResponse",

    # Token
    "TokenRequest",
    "TokenResponse",

    # Chat
    "ChatAttachment",
    "ChatMessageRequest",
    "ChatMessage",

    # Attendance
    "AttendanceRequest",
]
