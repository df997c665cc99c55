"""
Remote capabilities the recording engine depends on, and their LiveKit
implementations.

LiveKit's egress service is the authoritative job source; its room service
is the room directory. Every call is bounded by a request timeout and every
failure surfaces as a RemoteCallError carrying a classifiable code.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import aiohttp
from google.protobuf.json_format import MessageToDict
from livekit import api
from livekit.api.twirp_client import TwirpError

from utils.logger import log_debug

DEADLINE_EXCEEDED = "deadline_exceeded"
FAILED_PRECONDITION = "failed_precondition"
NOT_FOUND = "not_found"
UNAVAILABLE = "unavailable"
UNKNOWN = "unknown"

# Twirp maps these codes onto HTTP statuses; some proxies only keep the status
_STATUS_CODES = {
    408: DEADLINE_EXCEEDED,
    412: FAILED_PRECONDITION,
    404: NOT_FOUND,
}


class RemoteCallError(Exception):
    """A call to LiveKit failed; `code` tells callers how to react."""

    def __init__(self, code: str, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.code = code or UNKNOWN
        self.message = message
        self.status = status

    @property
    def is_deadline_exceeded(self) -> bool:
        return self.code == DEADLINE_EXCEEDED

    @property
    def is_failed_precondition(self) -> bool:
        return self.code == FAILED_PRECONDITION

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


def classify_code(code: Optional[str], status: Optional[int]) -> str:
    if code in (DEADLINE_EXCEEDED, FAILED_PRECONDITION, NOT_FOUND):
        return code
    if status in _STATUS_CODES:
        return _STATUS_CODES[status]
    return code or UNKNOWN


@dataclass
class RemoteJob:
    """
    Read-only view of a LiveKit EgressInfo.

    All timestamps are epoch nanoseconds as reported by LiveKit; zero means
    "not set".
    """
    job_id: str
    room_name: str
    status: str = ""
    started_at: int = 0
    ended_at: int = 0
    error: str = ""
    file_started_at: int = 0
    file_results_started_at: List[int] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return not self.ended_at

    @classmethod
    def from_egress_info(cls, info) -> "RemoteJob":
        return cls(
            job_id=info.egress_id,
            room_name=info.room_name,
            status=api.EgressStatus.Name(info.status),
            started_at=int(info.started_at or 0),
            ended_at=int(info.ended_at or 0),
            error=info.error or "",
            file_started_at=int(info.file.started_at or 0),
            file_results_started_at=[int(r.started_at or 0) for r in info.file_results],
            raw=MessageToDict(info),
        )

    def to_dict(self) -> Dict[str, Any]:
        if self.raw:
            return self.raw
        return {
            "egressId": self.job_id,
            "roomName": self.room_name,
            "status": self.status,
            "startedAt": str(self.started_at),
            "endedAt": str(self.ended_at),
            "error": self.error,
        }


@dataclass(frozen=True)
class OutputSpec:
    """Room composite recording policy: one grid-layout MP4 per recording."""
    filepath: str
    layout: str = "grid"
    width: int = 1920
    height: int = 1080
    framerate: int = 30
    video_bitrate: int = 6000  # kbps
    audio_bitrate: int = 128  # kbps

    @classmethod
    def for_room(cls, output_dir: str, room_name: str, now_ms: int) -> "OutputSpec":
        return cls(filepath=f"{output_dir.rstrip('/')}/{room_name}/{now_ms}.mp4")


class AuthoritativeJobSource(Protocol):
    async def list_jobs(self, room_name: Optional[str] = None) -> List[RemoteJob]:
        ...

    async def create_job(self, room_name: str, output: OutputSpec) -> str:
        ...

    async def stop_job(self, job_id: str) -> None:
        ...


class RoomDirectorySource(Protocol):
    async def list_participants(self, room_name: str) -> list:
        ...


class _BoundedCalls:
    def __init__(self, request_timeout: float):
        self.request_timeout = request_timeout

    async def _call(self, awaitable, what: str):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            raise RemoteCallError(
                DEADLINE_EXCEEDED, f"{what} timed out after {self.request_timeout}s"
            ) from e
        except TwirpError as e:
            status = getattr(e, "status", None)
            message = getattr(e, "message", None) or str(e)
            raise RemoteCallError(classify_code(e.code, status), f"{what} failed: {message}", status) from e
        except aiohttp.ClientError as e:
            raise RemoteCallError(UNAVAILABLE, f"{what} failed: {e}") from e
        except OSError as e:
            # Socket-level failures that escape aiohttp's own wrapping
            raise RemoteCallError(UNAVAILABLE, f"{what} failed: {e}") from e


class LiveKitEgressSource(_BoundedCalls):
    """AuthoritativeJobSource backed by LiveKit's egress service."""

    def __init__(self, lkapi: api.LiveKitAPI, request_timeout: float):
        super().__init__(request_timeout)
        self.lkapi = lkapi

    async def list_jobs(self, room_name: Optional[str] = None) -> List[RemoteJob]:
        request = api.ListEgressRequest(room_name=room_name) if room_name else api.ListEgressRequest()
        response = await self._call(self.lkapi.egress.list_egress(request), "list_egress")
        return [RemoteJob.from_egress_info(item) for item in response.items]

    async def create_job(self, room_name: str, output: OutputSpec) -> str:
        request = api.RoomCompositeEgressRequest(
            room_name=room_name,
            layout=output.layout,
            advanced=api.EncodingOptions(
                width=output.width,
                height=output.height,
                framerate=output.framerate,
                video_bitrate=output.video_bitrate,
                audio_bitrate=output.audio_bitrate,
            ),
            file_outputs=[
                api.EncodedFileOutput(
                    file_type=api.EncodedFileType.MP4,
                    filepath=output.filepath,
                )
            ],
        )
        log_debug(f"Requesting room composite egress for room={room_name} filepath={output.filepath}")
        info = await self._call(
            self.lkapi.egress.start_room_composite_egress(request), "start_room_composite_egress"
        )
        return info.egress_id

    async def stop_job(self, job_id: str) -> None:
        await self._call(
            self.lkapi.egress.stop_egress(api.StopEgressRequest(egress_id=job_id)), "stop_egress"
        )


class LiveKitRoomDirectory(_BoundedCalls):
    """RoomDirectorySource backed by LiveKit's room service."""

    def __init__(self, lkapi: api.LiveKitAPI, request_timeout: float):
        super().__init__(request_timeout)
        self.lkapi = lkapi

    async def list_participants(self, room_name: str) -> list:
        response = await self._call(
            self.lkapi.room.list_participants(api.ListParticipantsRequest(room=room_name)),
            "list_participants",
        )
        return list(response.participants)
