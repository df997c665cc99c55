"""
Main FastAPI application
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from livekit import api as livekit_api
from config.settings import config
from utils.logger import log_info, log_error
from database.mongo import get_mongodb_manager
from chatService.chat import ChatHistory
from recordingService import (
    CleanupScheduler,
    FileStartAwaiter,
    LiveKitEgressSource,
    LiveKitRoomDirectory,
    Reconciler,
    RecordingLifecycle,
    RecordingStateCache,
)

# Import routers
from routers.recording import router as recording_router, init_recording_router
from routers.token import router as token_router, init_token_router
from routers.chat import router as chat_router, init_chat_router
from routers.attendance import router as attendance_router, init_attendance_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create LiveKit clients, the recording engine and the cleanup job for the app's lifetime."""
    config.validate()

    lkapi = livekit_api.LiveKitAPI(
        url=config.livekit_http_url(),
        api_key=config.LIVEKIT_API_KEY,
        api_secret=config.LIVEKIT_API_SECRET,
    )
    egress_source = LiveKitEgressSource(lkapi, config.EGRESS_REQUEST_TIMEOUT)
    room_directory = LiveKitRoomDirectory(lkapi, config.EGRESS_REQUEST_TIMEOUT)

    cache = RecordingStateCache()
    lifecycle = RecordingLifecycle(
        jobs=egress_source,
        cache=cache,
        reconciler=Reconciler(egress_source, cache, config.EGRESS_MIN_ACTIVE_MS),
        awaiter=FileStartAwaiter(
            egress_source,
            max_wait_ms=config.FILE_START_MAX_WAIT_MS,
            poll_interval_ms=config.FILE_START_POLL_INTERVAL_MS,
        ),
        min_active_ms=config.EGRESS_MIN_ACTIVE_MS,
        stop_max_wait_ms=config.EGRESS_STOP_MAX_WAIT_MS,
        output_dir=config.RECORDING_OUTPUT_DIR,
    )
    scheduler = CleanupScheduler(
        jobs=egress_source,
        rooms=room_directory,
        cache=cache,
        interval_ms=config.EGRESS_CLEANUP_INTERVAL_MS,
        max_duration_minutes=config.MAX_EGRESS_DURATION_MINUTES,
    )
    log_info(f"Egress client pointing at {config.livekit_http_url()} with timeout {config.EGRESS_REQUEST_TIMEOUT}s")

    # MongoDB backs attendance and enrollment only; recording keeps working without it
    mongodb_manager = None
    try:
        mongodb_manager = get_mongodb_manager(
            mongodb_uri=config.MONGODB_URI,
            database_name=config.MONGODB_DATABASE
        )
    except Exception as e:
        log_error(f"Failed to initialize MongoDB Manager: {str(e)}")

    # Initialize routers with service instances
    init_recording_router(lifecycle, egress_source)
    init_token_router(mongodb_manager)
    init_chat_router(ChatHistory())
    init_attendance_router(mongodb_manager)

    scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()
        await lifecycle.drain()
        await lkapi.aclose()
        if mongodb_manager is not None:
            mongodb_manager.close()
        log_info("Recording service shut down")


# Initialize FastAPI app
app = FastAPI(
    title="Classroom Recording API",
    description="LiveKit room recording, access tokens, chat and attendance",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(recording_router)
app.include_router(token_router)
app.include_router(chat_router)
app.include_router(attendance_router)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "LiveKit recording backend is running.",
        "version": "1.0.0",
        "documentation": "/docs",
        "endpoint_groups": {
            "Recording": {
                "endpoints": [
                    "POST /start-recording - Start (or join) the room's recording",
                    "POST /stop-recording?async=true|false - Stop the room's recording",
                    "GET /recording-status/{roomName} - Current recording state",
                    "GET /egress/{roomName} - All egress for a room",
                    "GET /egress-status/{egressId} - One egress by id"
                ]
            },
            "Token": {
                "endpoints": [
                    "POST /token - Issue a room access token"
                ]
            },
            "Chat": {
                "prefix": "/chat",
                "endpoints": [
                    "GET /chat/history?roomName= - Room chat history",
                    "POST /chat/messages - Post a chat message"
                ]
            },
            "Attendance": {
                "prefix": "/attendance",
                "endpoints": [
                    "POST /attendance - Save session attendance",
                    "GET /attendance/history?sessionId= - Latest session attendance"
                ]
            }
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "Classroom Recording API",
        "services": {
            "recording": "operational",
            "token": "operational",
            "chat": "operational",
            "attendance": "operational"
        }
    }


if __name__ == "__main__":
    import uvicorn
    log_info(f"Starting server on {config.API_HOST}:{config.API_PORT}")
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
