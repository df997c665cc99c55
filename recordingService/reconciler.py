"""
Brings the local recording cache in line with LiveKit's egress listing.
"""

import time
from typing import Callable, Optional

from recordingService.sources import AuthoritativeJobSource, RemoteJob
from recordingService.state import RecordingSession, RecordingStateCache
from utils.logger import log_info


def now_ms() -> int:
    return int(time.time() * 1000)


class Reconciler:
    """
    Refreshes one room's cache entry from the authoritative job listing.

    LiveKit egress entries carry an `ended_at` timestamp once finished; the
    first entry without one is the room's active recording.
    """

    def __init__(
        self,
        jobs: AuthoritativeJobSource,
        cache: RecordingStateCache,
        min_active_ms: int,
        clock: Callable[[], int] = now_ms,
    ):
        self.jobs = jobs
        self.cache = cache
        self.min_active_ms = min_active_ms
        self.clock = clock

    async def find_active_job(self, room_name: str) -> Optional[RemoteJob]:
        items = await self.jobs.list_jobs(room_name)
        for item in items or []:
            if item.is_active:
                return item
        return None

    async def reconcile(self, room_name: str, adopted_by: Optional[str] = None) -> Optional[RemoteJob]:
        """
        Query LiveKit for the room and rewrite the cache to match.

        An active egress unknown to the cache (or with a different id) is
        adopted with a provisional start time of now; `started_by` is kept
        from the previous entry, else `adopted_by`, else "unknown". A cache
        entry without an active egress behind it is dropped.

        Raises RemoteCallError when the listing fails; the cache is left
        untouched in that case.
        """
        active = await self.find_active_job(room_name)
        local = self.cache.get(room_name)

        if active is None:
            if local is not None:
                self.cache.discard(room_name)
                log_info(f"[reconcile] Cleared stale recording {local.job_id} for room={room_name}")
            return None

        if local is None or local.job_id != active.job_id:
            started_by = (local.started_by if local else None) or adopted_by
            session = RecordingSession.begin(active.job_id, self.clock(), started_by, self.min_active_ms)
            self.cache.put(room_name, session)
            log_info(f"[reconcile] Adopted egress {active.job_id} for room={room_name} (started_by={session.started_by})")

        return active
