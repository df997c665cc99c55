"""
Pydantic models for the Classroom Recording API
All request and response models are centralized here for better organization and reusability.
Field names follow the camelCase JSON used by the web client.
"""

from pydantic import BaseModel
from typing import Any, Optional


# ============================================================================
# COMMON MODELS
# ============================================================================

class ErrorResponse(BaseModel):
    """Error body for recording endpoints that answer with a structured failure."""
    success: bool = False
    error: str
    code: Optional[str] = None


# ============================================================================
# RECORDING MODELS
# ============================================================================

class StartRecordingRequest(BaseModel):
    """Request model for starting a room recording."""
    roomName: Optional[str] = None  # Required; validated in the route to answer 400
    identity: Optional[str] = None  # Who asked for the recording (advisory)


class StartRecordingResponse(BaseModel):
    """Response model for start-recording."""
    success: bool
    egressId: str
    message: str
    alreadyRecording: Optional[bool] = None
    recordingStartedAt: Optional[int] = None  # epoch ms


class StopRecordingRequest(BaseModel):
    """Request model for stopping a room recording."""
    roomName: Optional[str] = None


class StopRecordingResponse(BaseModel):
    """Response model for stop-recording (sync success or async acknowledgement)."""
    success: bool
    message: str
    duration: Optional[int] = None  # seconds
    egressId: Optional[str] = None


class RecordingStatusResponse(BaseModel):
    """Response model for recording-status."""
    isRecording: bool
    egressId: Optional[str] = None
    startedAt: Optional[int] = None  # epoch ms
    startedBy: Optional[str] = None
    duration: Optional[int] = None  # seconds


class EgressListResponse(BaseModel):
    """Pass-through egress listing for a room."""
    roomName: str
    items: list[dict[str, Any]]


# ============================================================================
# TOKEN MODELS
# ============================================================================

class TokenRequest(BaseModel):
    """Request model for a room access token."""
    room: Optional[str] = None
    identity: Optional[str] = None
    metadata: Optional[str] = None  # JSON string: {"role", "email", "courseId"}


class TokenResponse(BaseModel):
    """Response model for a room access token."""
    token: str


# ============================================================================
# CHAT MODELS
# ============================================================================

class ChatAttachment(BaseModel):
    """Normalized chat attachment."""
    url: str
    type: str = ""
    name: str = ""


class ChatMessageRequest(BaseModel):
    """Request model for posting a chat message."""
    roomName: Optional[str] = None
    senderIdentity: Optional[str] = None
    senderName: Optional[str] = None
    text: Optional[str] = None
    attachments: Optional[Any] = None  # Normalized server-side; junk entries are dropped


class ChatMessage(BaseModel):
    """Stored chat message."""
    id: str
    roomName: str
    senderIdentity: str
    senderName: str
    text: str
    timestamp: int  # epoch ms
    attachments: list[ChatAttachment]


# ============================================================================
# ATTENDANCE MODELS
# ============================================================================

class AttendanceRequest(BaseModel):
    """Session attendance payload; replaces the stored record for the session."""
    sessionId: Optional[str] = None
    roomName: Optional[str] = None
    courseId: Optional[Any] = None  # Stored as sent
    courseName: Optional[Any] = None
    participants: Optional[Any] = None
