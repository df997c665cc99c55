"""
Room recording (LiveKit egress) API endpoints
"""

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from utils.logger import log_info, log_exception
from recordingService import RecordingLifecycle, StopOutcome
from model import (
    ErrorResponse,
    StartRecordingRequest,
    StartRecordingResponse,
    StopRecordingRequest,
    StopRecordingResponse,
    RecordingStatusResponse,
    EgressListResponse,
)

router = APIRouter(tags=["Recording"])


# Global variables (to be injected)
recording_lifecycle: RecordingLifecycle = None
egress_source = None


def init_recording_router(lifecycle, jobs):
    """Initialize the router with the recording lifecycle and egress source instances."""
    global recording_lifecycle, egress_source
    recording_lifecycle = lifecycle
    egress_source = jobs


def _error(status_code: int, error: str, code: str = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code).model_dump(exclude_none=True),
    )


@router.post("/start-recording", response_model=StartRecordingResponse, response_model_exclude_none=True)
async def start_recording(request: StartRecordingRequest):
    """
    Start recording a room, or return the egress that is already recording it.

    The call is idempotent: LiveKit is consulted first, and an active egress
    for the room is returned with alreadyRecording=true instead of creating
    a second one. A new egress is only reported once LiveKit confirms its
    file has started (or after the wait budget, with a best-effort start).

    Args:
        request: StartRecordingRequest containing:
            - roomName: LiveKit room to record (required)
            - identity: Who asked for the recording (optional)

    Returns:
        StartRecordingResponse with egressId and recordingStartedAt (epoch ms)
    """
    if not request.roomName:
        raise HTTPException(status_code=400, detail="roomName is required")

    try:
        log_info(f"Start recording request for room '{request.roomName}' by '{request.identity or 'unknown'}'")
        result = await recording_lifecycle.start(request.roomName, request.identity)

        if result.already_recording:
            return StartRecordingResponse(
                success=True,
                alreadyRecording=True,
                egressId=result.job_id,
                message="Recording already in progress; using existing egress.",
            )

        return StartRecordingResponse(
            success=True,
            egressId=result.job_id,
            message="Recording started successfully",
            recordingStartedAt=result.started_at_ms,
        )

    except Exception as e:
        log_exception(f"Failed to start recording for room '{request.roomName}': {str(e)}")
        return _error(500, str(e))


@router.post("/stop-recording", response_model=StopRecordingResponse, response_model_exclude_none=True)
async def stop_recording(
    request: StopRecordingRequest,
    async_: str = Query("false", alias="async"),
):
    """
    Stop a room's recording.

    Synchronous mode waits out the egress' minimum active period (capped)
    and the LiveKit stop call. With ?async=true the stop is signalled and
    the call returns 202 at once; poll /recording-status to confirm.

    Returns:
        200 {success, duration} | 202 {success: false, code: "deadline_exceeded"}
        | 409 {success: false, code: "failed_precondition"} | 404 | 500;
        async: 202 {success, egressId}
    """
    if not request.roomName:
        raise HTTPException(status_code=400, detail="roomName is required")

    is_async = str(async_ or "").lower() == "true"
    room_name = request.roomName

    try:
        result = await recording_lifecycle.stop(room_name, is_async=is_async)
    except Exception as e:
        log_exception(f"Failed to stop recording for room '{room_name}': {str(e)}")
        return _error(500, str(e))

    if result.outcome == StopOutcome.NOT_FOUND:
        return _error(404, "No active recording found for this room")

    if result.outcome == StopOutcome.SIGNALLED:
        return JSONResponse(
            status_code=202,
            content=StopRecordingResponse(
                success=True,
                message="Stop signal sent. Poll status to confirm completion.",
                egressId=result.job_id,
            ).model_dump(exclude_none=True),
        )

    if result.outcome == StopOutcome.FINALIZING:
        return _error(
            202,
            "Stop request timed out; egress likely finalizing. Try again shortly or check status.",
            code="deadline_exceeded",
        )

    if result.outcome == StopOutcome.CONFLICT:
        return _error(
            409,
            "Egress is not in a stoppable state (already ended or failed).",
            code="failed_precondition",
        )

    if result.outcome == StopOutcome.FAILED:
        return _error(500, result.error or "Failed to stop recording")

    return StopRecordingResponse(
        success=True,
        message="Recording stopped successfully",
        duration=result.duration_seconds,
    )


@router.get("/recording-status/{roomName}", response_model=RecordingStatusResponse, response_model_exclude_none=True)
async def recording_status(roomName: str):
    """
    Report whether a room is being recorded, as LiveKit sees it.

    A page refresh or a restarted backend rediscovers in-progress
    recordings here; stale local entries are cleared.
    """
    try:
        status = await recording_lifecycle.status(roomName)
        if not status.is_recording:
            return RecordingStatusResponse(isRecording=False)

        session = status.session
        return RecordingStatusResponse(
            isRecording=True,
            egressId=session.job_id,
            startedAt=session.started_at_ms,
            startedBy=session.started_by,
            duration=status.duration_seconds,
        )

    except Exception as e:
        log_exception(f"Failed to get recording status for room '{roomName}': {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/egress/{roomName}", response_model=EgressListResponse)
async def list_room_egress(roomName: str):
    """List every egress LiveKit knows for a room, finished ones included."""
    try:
        items = await egress_source.list_jobs(roomName)
        return EgressListResponse(roomName=roomName, items=[item.to_dict() for item in items])
    except Exception as e:
        log_exception(f"Failed to list egress for room '{roomName}': {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/egress-status/{egressId}")
async def egress_status(egressId: str):
    """Look up a single egress by id."""
    try:
        items = await egress_source.list_jobs()
        match = next((item for item in items if item.job_id == egressId), None)
    except Exception as e:
        log_exception(f"Failed to get egress status for '{egressId}': {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

    if match is None:
        raise HTTPException(status_code=404, detail="Egress not found")
    return match.to_dict()
