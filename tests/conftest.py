import os
import sys
import time
from pathlib import Path

# Keep test runs from writing log files
os.environ.setdefault("LOG_TO_FILE", "false")

# Add project root to Python path FIRST
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from recordingService import (
    FileStartAwaiter,
    Reconciler,
    RecordingLifecycle,
    RecordingStateCache,
    RemoteCallError,
    RemoteJob,
)
from recordingService.sources import FAILED_PRECONDITION


def ms_to_ns(ms) -> int:
    return int(ms) * 1_000_000


def wall_ms() -> int:
    return int(time.time() * 1000)


class FakeEgressSource:
    """In-memory stand-in for LiveKit's egress service."""

    def __init__(self):
        self.jobs = []
        self.created = []
        self.stopped = []
        self.list_calls = 0
        self.list_errors = []
        self.create_error = None
        self.stop_errors = {}
        self.new_job_file_started = True
        self.new_job_error = ""
        self._seq = 0

    def add_job(self, job_id, room_name, started_at_ms=None, ended=False, **kwargs) -> RemoteJob:
        started_at_ms = wall_ms() if started_at_ms is None else started_at_ms
        job = RemoteJob(
            job_id=job_id,
            room_name=room_name,
            status="EGRESS_COMPLETE" if ended else "EGRESS_ACTIVE",
            started_at=ms_to_ns(started_at_ms),
            ended_at=ms_to_ns(wall_ms()) if ended else 0,
            **kwargs,
        )
        self.jobs.append(job)
        return job

    def find(self, job_id):
        return next((j for j in self.jobs if j.job_id == job_id), None)

    async def list_jobs(self, room_name=None):
        self.list_calls += 1
        if self.list_errors:
            raise self.list_errors.pop(0)
        return [j for j in self.jobs if room_name is None or j.room_name == room_name]

    async def create_job(self, room_name, output):
        if self.create_error is not None:
            raise self.create_error
        self._seq += 1
        job_id = f"EG_{self._seq}"
        self.created.append((room_name, output))
        now = wall_ms()
        self.jobs.append(RemoteJob(
            job_id=job_id,
            room_name=room_name,
            status="EGRESS_ACTIVE" if self.new_job_file_started else "EGRESS_STARTING",
            started_at=ms_to_ns(now),
            error=self.new_job_error,
            file_started_at=ms_to_ns(now) if self.new_job_file_started else 0,
        ))
        return job_id

    async def stop_job(self, job_id):
        self.stopped.append(job_id)
        error = self.stop_errors.get(job_id)
        if error is not None:
            raise error
        job = self.find(job_id)
        if job is None or job.ended_at:
            raise RemoteCallError(FAILED_PRECONDITION, f"egress {job_id} is not active")
        job.ended_at = ms_to_ns(wall_ms())
        job.status = "EGRESS_COMPLETE"


class FakeRoomDirectory:
    """In-memory stand-in for LiveKit's room service."""

    def __init__(self):
        self.participants = {}
        self.errors = {}
        self.calls = []

    async def list_participants(self, room_name):
        self.calls.append(room_name)
        if room_name in self.errors:
            raise self.errors[room_name]
        return list(self.participants.get(room_name, []))


def build_lifecycle(jobs, cache=None, min_active_ms=0, max_wait_ms=200, poll_interval_ms=10, clock=wall_ms,
                    stop_max_wait_ms=5000):
    if cache is None:
        cache = RecordingStateCache()
    return RecordingLifecycle(
        jobs=jobs,
        cache=cache,
        reconciler=Reconciler(jobs, cache, min_active_ms, clock=clock),
        awaiter=FileStartAwaiter(jobs, max_wait_ms=max_wait_ms, poll_interval_ms=poll_interval_ms),
        min_active_ms=min_active_ms,
        stop_max_wait_ms=stop_max_wait_ms,
        output_dir="/out",
        clock=clock,
    )


@pytest.fixture
def egress():
    return FakeEgressSource()


@pytest.fixture
def directory():
    return FakeRoomDirectory()


@pytest.fixture
def cache():
    return RecordingStateCache()


@pytest.fixture
def lifecycle(egress, cache):
    return build_lifecycle(egress, cache)


@pytest.fixture
def make_lifecycle(egress, cache):
    def _make(**kwargs):
        return build_lifecycle(egress, cache, **kwargs)
    return _make
