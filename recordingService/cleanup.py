"""
Cleanup Scheduler - periodic sweep of running egress jobs

Stops recordings that ran past the maximum duration and recordings of rooms
nobody is in any more. Each room is handled independently; one failure never
stops the sweep.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from recordingService.reconciler import now_ms
from recordingService.sources import (
    AuthoritativeJobSource,
    RemoteCallError,
    RemoteJob,
    RoomDirectorySource,
)
from recordingService.state import RecordingStateCache
from utils.logger import log_error, log_exception, log_info, log_warning

NANOS_PER_MS = 1_000_000


@dataclass
class SweepReport:
    stopped_for_duration: List[str] = field(default_factory=list)
    stopped_empty: List[str] = field(default_factory=list)
    failed_rooms: List[str] = field(default_factory=list)


class CleanupScheduler:
    """
    Background service that enforces recording liveness limits.

    Runs once at start, then every `interval_ms`.
    """

    def __init__(
        self,
        jobs: AuthoritativeJobSource,
        rooms: RoomDirectorySource,
        cache: RecordingStateCache,
        interval_ms: int,
        max_duration_minutes: int,
        clock: Callable[[], int] = now_ms,
    ):
        self.jobs = jobs
        self.rooms = rooms
        self.cache = cache
        self.interval_ms = interval_ms
        self.max_duration_minutes = max_duration_minutes
        self.clock = clock
        self.running = False
        self.task: Optional[asyncio.Task] = None

    def start(self):
        """Start the sweep background task"""
        if self.running:
            log_warning("[cleanup] Scheduler already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run())
        log_info(
            f"[cleanup] Egress cleanup job running every {round(self.interval_ms / 60000)} minutes; "
            f"max duration {self.max_duration_minutes} minutes."
        )

    async def stop(self):
        """Stop the sweep background task"""
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
        log_info("[cleanup] Scheduler stopped")

    async def _run(self):
        while self.running:
            try:
                await self.run_once()
            except Exception as e:
                log_exception(f"[cleanup] Failed to run stale recording cleanup job: {e}")
            await asyncio.sleep(self.interval_ms / 1000)

    async def run_once(self) -> SweepReport:
        report = SweepReport()
        try:
            items = await self.jobs.list_jobs()
        except RemoteCallError as e:
            log_error(f"[cleanup] Failed to list egress: {e}")
            return report

        for item in items or []:
            if item is None or not item.is_active or not item.room_name or not item.job_id:
                continue  # finished or malformed
            try:
                await self._sweep_job(item, report)
            except Exception as e:
                report.failed_rooms.append(item.room_name)
                log_exception(f"[cleanup] Unexpected error handling egress {item.job_id} in room {item.room_name}: {e}")

        return report

    def _exceeded_max_duration(self, job: RemoteJob) -> bool:
        if not job.started_at:
            return False
        started_ms = job.started_at / NANOS_PER_MS
        return self.clock() - started_ms > self.max_duration_minutes * 60 * 1000

    async def _sweep_job(self, job: RemoteJob, report: SweepReport):
        room_name = job.room_name

        # Failsafe against very long recordings
        if self._exceeded_max_duration(job):
            log_info(f"[cleanup] Stopping egress {job.job_id} in room {room_name} due to max duration exceeded.")
            try:
                await self.jobs.stop_job(job.job_id)
                self.cache.discard(room_name)
                report.stopped_for_duration.append(job.job_id)
                return
            except RemoteCallError as e:
                log_error(f"[cleanup] Failed to stop long-running egress {job.job_id}: {e}")

        try:
            participants = await self.rooms.list_participants(room_name)
        except RemoteCallError as e:
            report.failed_rooms.append(room_name)
            log_error(f"[cleanup] Failed to list participants for room {room_name}: {e}")
            return

        if len(participants or []) > 0:
            return

        log_info(f"[cleanup] Stopping egress {job.job_id} in room {room_name} because room has 0 participants.")
        try:
            await self.jobs.stop_job(job.job_id)
            report.stopped_empty.append(job.job_id)
        except RemoteCallError as e:
            if e.is_deadline_exceeded or e.is_failed_precondition:
                # Egress is finalizing or already ended
                log_warning(f"[cleanup] stop_egress for {job.job_id} returned {e.code}; treating as non-fatal.")
                report.stopped_empty.append(job.job_id)
            else:
                report.failed_rooms.append(room_name)
                log_error(f"[cleanup] Failed to stop egress {job.job_id}: {e}")
        finally:
            self.cache.discard(room_name)
