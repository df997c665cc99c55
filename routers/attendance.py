"""
Session attendance API endpoints
"""

from fastapi import APIRouter, HTTPException, Query, Response
from typing import Optional
from utils.logger import log_info, log_exception
from model import AttendanceRequest

router = APIRouter(prefix="/attendance", tags=["Attendance"])


# Global variable (to be injected)
mongodb_manager = None


def init_attendance_router(mongo_manager):
    """Initialize the router with the MongoDB manager instance."""
    global mongodb_manager
    mongodb_manager = mongo_manager


def _require_store():
    if mongodb_manager is None:
        raise HTTPException(status_code=500, detail="Attendance store not available")
    return mongodb_manager


@router.post("", status_code=204)
async def save_attendance(request: AttendanceRequest):
    """Save (replace) the attendance record of a session."""
    payload = request.model_dump()
    log_info(f"[attendance] incoming payload for session '{request.sessionId}' room '{request.roomName}'")

    if not request.sessionId or not request.roomName:
        raise HTTPException(status_code=400, detail="sessionId and roomName are required")

    store = _require_store()
    try:
        store.save_session_attendance(payload)
        return Response(status_code=204)
    except Exception as e:
        log_exception(f"Error saving session attendance: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to save session attendance: {str(e)}")


@router.get("/history")
async def get_attendance_history(sessionId: Optional[str] = Query(None)):
    """Fetch the latest attendance record for a session."""
    if not sessionId:
        raise HTTPException(status_code=400, detail="sessionId query parameter is required")

    store = _require_store()
    try:
        data = store.get_session_attendance(sessionId)
    except Exception as e:
        log_exception(f"Error fetching session attendance: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch session attendance: {str(e)}")

    if not data:
        raise HTTPException(status_code=404, detail="Attendance not found for this sessionId")
    return data
