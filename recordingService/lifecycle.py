"""
Idempotent start / stop / status for room recordings.

Each operation reconciles with LiveKit before deciding anything, so a fresh
process (empty cache) or a stale cache entry never leads to a duplicate
egress or a phantom "recording" report.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Set

from recordingService.awaiter import FileStartAwaiter
from recordingService.reconciler import Reconciler, now_ms
from recordingService.sources import AuthoritativeJobSource, OutputSpec, RemoteCallError
from recordingService.state import RecordingSession, RecordingStateCache
from utils.logger import log_error, log_exception, log_info, log_warning


class RecordingStartError(Exception):
    """LiveKit refused or failed to create the egress."""

    def __init__(self, room_name: str, message: str):
        super().__init__(message)
        self.room_name = room_name


class StopOutcome(str, Enum):
    STOPPED = "stopped"
    SIGNALLED = "signalled"
    FINALIZING = "deadline_exceeded"
    CONFLICT = "failed_precondition"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class StartResult:
    job_id: str
    already_recording: bool
    started_at_ms: Optional[int] = None


@dataclass
class StopResult:
    outcome: StopOutcome
    job_id: Optional[str] = None
    duration_seconds: Optional[int] = None
    error: Optional[str] = None


@dataclass
class StatusResult:
    is_recording: bool
    session: Optional[RecordingSession] = None
    duration_seconds: Optional[int] = None


class RecordingLifecycle:
    def __init__(
        self,
        jobs: AuthoritativeJobSource,
        cache: RecordingStateCache,
        reconciler: Reconciler,
        awaiter: FileStartAwaiter,
        min_active_ms: int = 5000,
        stop_max_wait_ms: int = 5000,
        output_dir: str = "/out",
        clock: Callable[[], int] = now_ms,
    ):
        self.jobs = jobs
        self.cache = cache
        self.reconciler = reconciler
        self.awaiter = awaiter
        self.min_active_ms = min_active_ms
        self.stop_max_wait_ms = stop_max_wait_ms
        self.output_dir = output_dir
        self.clock = clock
        self._background: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------ start

    async def start(self, room_name: str, identity: Optional[str] = None) -> StartResult:
        """
        Start recording a room, or report the egress already doing so.

        Calls for the same room are serialized, so repeated or concurrent
        starts converge on a single egress. Raises RecordingStartError when
        LiveKit cannot create the egress, EgressEndedBeforeFileStarted when
        it dies before writing, and RemoteCallError when the room cannot be
        reconciled.
        """
        async with self.cache.room_lock(room_name):
            active = await self.reconciler.reconcile(room_name, adopted_by=identity)
            if active is not None:
                log_info(f"[start-recording] Room {room_name} already recording with egress {active.job_id}")
                return StartResult(job_id=active.job_id, already_recording=True)

            output = OutputSpec.for_room(self.output_dir, room_name, self.clock())
            log_info(f"[start-recording] Starting egress for room={room_name} filepath={output.filepath}")
            try:
                job_id = await self.jobs.create_job(room_name, output)
            except RemoteCallError as e:
                log_error(f"[start-recording] Failed to create egress for room={room_name}: {e}")
                raise RecordingStartError(room_name, str(e)) from e

            log_info(f"[start-recording] Egress {job_id} created, waiting for file to actually start...")
            file_started_ms = await self.awaiter.wait(job_id)
            started_at = file_started_ms or self.clock()

            self.cache.put(
                room_name,
                RecordingSession.begin(job_id, started_at, identity, self.min_active_ms),
            )
            return StartResult(job_id=job_id, already_recording=False, started_at_ms=started_at)

    # ------------------------------------------------------------------- stop

    async def _reconcile_quietly(self, room_name: str) -> Optional[RecordingSession]:
        try:
            await self.reconciler.reconcile(room_name)
        except RemoteCallError as e:
            log_error(f"[stop-recording] Failed to reconcile room={room_name} with LiveKit: {e}")
        return self.cache.get(room_name)

    async def stop(self, room_name: str, is_async: bool = False) -> StopResult:
        if is_async:
            session = await self._find_session(room_name)
            if session is None:
                return StopResult(StopOutcome.NOT_FOUND)
            return self._stop_detached(room_name, session)

        async with self.cache.room_lock(room_name):
            session = await self._find_session(room_name)
            if session is None:
                return StopResult(StopOutcome.NOT_FOUND)

            # Give the egress a short active period before stopping it
            remaining = session.not_before_stop_ms - self.clock()
            if remaining > 0:
                await asyncio.sleep(min(remaining, self.stop_max_wait_ms) / 1000)

            log_info(f"[stop-recording] Stopping egressId={session.job_id} for room={room_name}, async=False")
            return await self._stop_now(room_name, session)

    async def _find_session(self, room_name: str) -> Optional[RecordingSession]:
        session = await self._reconcile_quietly(room_name)
        if session is None:
            # A fresh process may only know about the egress remotely
            session = await self._reconcile_quietly(room_name)
        return session

    async def _stop_now(self, room_name: str, session: RecordingSession) -> StopResult:
        try:
            await self.jobs.stop_job(session.job_id)
        except RemoteCallError as e:
            if e.is_deadline_exceeded:
                log_warning(f"[stop-recording] Stop of {session.job_id} timed out; egress likely finalizing")
                return StopResult(StopOutcome.FINALIZING, job_id=session.job_id, error=str(e))
            if e.is_failed_precondition:
                self.cache.discard(room_name, session.job_id)
                log_warning(f"[stop-recording] Egress {session.job_id} not stoppable (already ended or failed)")
                return StopResult(StopOutcome.CONFLICT, job_id=session.job_id, error=str(e))
            log_error(f"[stop-recording] Failed to stop egress {session.job_id} for room={room_name}: {e}")
            return StopResult(StopOutcome.FAILED, job_id=session.job_id, error=str(e))

        self.cache.discard(room_name, session.job_id)
        log_info(f"[stop-recording] Egress {session.job_id} stopped for room={room_name}")
        return StopResult(
            StopOutcome.STOPPED,
            job_id=session.job_id,
            duration_seconds=session.duration_seconds(self.clock()),
        )

    def _stop_detached(self, room_name: str, session: RecordingSession) -> StopResult:
        log_info(f"[stop-recording] Stopping egressId={session.job_id} for room={room_name}, async=True")
        task = asyncio.create_task(self._stop_in_background(room_name, session))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return StopResult(StopOutcome.SIGNALLED, job_id=session.job_id)

    async def _stop_in_background(self, room_name: str, session: RecordingSession) -> None:
        try:
            await self.jobs.stop_job(session.job_id)
            self.cache.discard(room_name, session.job_id)
            log_info(f"[stop-recording] Egress {session.job_id} stopped.")
        except RemoteCallError as e:
            log_error(f"[stop-recording] Stop failed for {session.job_id}: {e}")
            if e.is_failed_precondition:
                self.cache.discard(room_name, session.job_id)
        except Exception as e:
            log_exception(f"[stop-recording] Unexpected error stopping {session.job_id}: {e}")

    async def drain(self) -> None:
        """Wait for detached stop calls still in flight."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ----------------------------------------------------------------- status

    async def status(self, room_name: str) -> StatusResult:
        active = await self.reconciler.reconcile(room_name)
        if active is None:
            return StatusResult(is_recording=False)

        session = self.cache.get(room_name)
        return StatusResult(
            is_recording=True,
            session=session,
            duration_seconds=session.duration_seconds(self.clock()),
        )
