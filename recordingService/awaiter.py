"""
Waits for LiveKit to report that a new egress has actually begun writing
its file.
"""

import asyncio
from typing import Optional

from recordingService.sources import AuthoritativeJobSource, RemoteCallError, RemoteJob
from utils.logger import log_info, log_warning

NANOS_PER_MS = 1_000_000


class EgressEndedBeforeFileStarted(Exception):
    """The egress disappeared, failed or ended before any output was written."""

    def __init__(self, job_id: str, reason: str):
        super().__init__(f"Egress {job_id} ended before file started: {reason}")
        self.job_id = job_id
        self.reason = reason


def file_started_at_ms(job: RemoteJob) -> Optional[float]:
    """
    When the recording file began, in epoch ms, or None if not yet.

    file.started_at is preferred; fileResults[0].started_at is the fallback
    for egress versions that only report results.
    """
    if job.file_started_at and job.file_started_at > 0:
        return job.file_started_at / NANOS_PER_MS
    if job.file_results_started_at:
        first = job.file_results_started_at[0]
        if first and first > 0:
            return first / NANOS_PER_MS
    return None


class FileStartAwaiter:
    def __init__(self, jobs: AuthoritativeJobSource, max_wait_ms: int = 30000, poll_interval_ms: int = 300):
        self.jobs = jobs
        self.max_wait_ms = max_wait_ms
        self.poll_interval_ms = poll_interval_ms

    async def wait(
        self,
        job_id: str,
        max_wait_ms: Optional[int] = None,
        poll_interval_ms: Optional[int] = None,
    ) -> Optional[int]:
        """
        Poll the full egress listing until the file for `job_id` starts.

        Returns the file start time in epoch ms, or None when the budget runs
        out (callers then start optimistically at "now"). Listing failures
        are retried on the next poll; a missing, failed or ended egress
        raises EgressEndedBeforeFileStarted.
        """
        max_wait_ms = self.max_wait_ms if max_wait_ms is None else max_wait_ms
        poll_interval = (self.poll_interval_ms if poll_interval_ms is None else poll_interval_ms) / 1000

        loop = asyncio.get_running_loop()
        began = loop.time()
        deadline = began + max_wait_ms / 1000
        last_status = None

        while loop.time() < deadline:
            elapsed_ms = int((loop.time() - began) * 1000)
            try:
                jobs = await self.jobs.list_jobs()
            except RemoteCallError as e:
                log_warning(f"[wait_for_file_start] Error while polling egress {job_id}: {e}")
                await asyncio.sleep(poll_interval)
                continue

            job = next((j for j in jobs if j.job_id == job_id), None)
            if job is None:
                raise EgressEndedBeforeFileStarted(job_id, "egress not found")

            started_ms = file_started_at_ms(job)
            if started_ms is not None:
                log_info(f"[wait_for_file_start] Egress {job_id} file started after {elapsed_ms}ms")
                return int(started_ms)

            if job.status != last_status:
                last_status = job.status
                log_info(f"[wait_for_file_start] Egress {job_id} status={job.status} at {elapsed_ms}ms")

            if job.error or job.ended_at:
                raise EgressEndedBeforeFileStarted(job_id, job.error or "ended")

            await asyncio.sleep(poll_interval)

        log_warning(f"[wait_for_file_start] Timeout waiting for file to start for egress {job_id} after {max_wait_ms}ms")
        return None
