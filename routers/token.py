"""
Room access token API endpoints
"""

import json
from fastapi import APIRouter, HTTPException
from livekit import api
from config.settings import config
from utils.logger import log_info, log_exception
from model import TokenRequest, TokenResponse

router = APIRouter(tags=["Token"])

INSTRUCTOR_ROLES = ("INSTRUCTOR", "INSTITUTE")
STUDENT_ROLE = "STUDENT"

FULL_PUBLISH_SOURCES = ["microphone", "camera", "screen_share", "screen_share_audio"]
DEFAULT_PUBLISH_SOURCES = ["microphone", "camera"]


# Global variable (to be injected)
mongodb_manager = None


def init_token_router(mongo_manager):
    """Initialize the router with the MongoDB manager used for enrollment checks."""
    global mongodb_manager
    mongodb_manager = mongo_manager


def build_grants(room: str, role: str) -> api.VideoGrants:
    """Only instructors may record; instructors and students may share their screen."""
    is_instructor = role in INSTRUCTOR_ROLES
    if is_instructor or role == STUDENT_ROLE:
        sources = FULL_PUBLISH_SOURCES
    else:
        sources = DEFAULT_PUBLISH_SOURCES

    return api.VideoGrants(
        room_join=True,
        room=room,
        can_subscribe=True,
        can_publish_data=True,
        room_record=is_instructor,
        can_publish=True,
        can_publish_sources=list(sources),
    )


@router.post("/token", response_model=TokenResponse)
async def create_token(request: TokenRequest):
    """
    Issue a LiveKit access token for a room.

    Args:
        request: TokenRequest containing:
            - room: Room name (required)
            - identity: Participant identity (required)
            - metadata: JSON string with role, email and courseId (optional)

    Students must send email and courseId and be enrolled in the course.
    """
    log_info(f"Received token request for room: {request.room} identity: {request.identity}")

    if not request.room or not request.identity:
        raise HTTPException(status_code=400, detail="room and identity are required")

    try:
        meta = json.loads(request.metadata) if request.metadata else {}
        role = str(meta.get("role") or "").upper()
        email = str(meta.get("email") or "")
        course_id = str(meta.get("courseId") or "")

        if role == STUDENT_ROLE:
            if not email or not course_id:
                raise HTTPException(status_code=400, detail="email and courseId are required for students")

            if mongodb_manager is None:
                raise HTTPException(status_code=500, detail="Enrollment store not available")

            if not mongodb_manager.check_student_enrollment(email, course_id):
                raise HTTPException(
                    status_code=403,
                    detail="Access denied: You must be enrolled in this course to join the session."
                )

        token = (
            api.AccessToken(config.LIVEKIT_API_KEY, config.LIVEKIT_API_SECRET)
            .with_identity(request.identity)
            .with_metadata(request.metadata or "")
            .with_grants(build_grants(request.room, role))
        )
        return TokenResponse(token=token.to_jwt())

    except HTTPException:
        raise
    except Exception as e:
        log_exception(f"Error generating token: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to generate token: {str(e)}")
