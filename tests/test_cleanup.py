import asyncio

import pytest

from recordingService import CleanupScheduler, RecordingSession, RemoteCallError
from recordingService.sources import DEADLINE_EXCEEDED, FAILED_PRECONDITION

NOW_MS = 1_700_000_000_000
MINUTE_MS = 60 * 1000


@pytest.fixture
def scheduler(egress, directory, cache):
    return CleanupScheduler(
        jobs=egress,
        rooms=directory,
        cache=cache,
        interval_ms=30 * MINUTE_MS,
        max_duration_minutes=180,
        clock=lambda: NOW_MS,
    )


@pytest.mark.asyncio
async def test_sweep_stops_recording_past_max_duration(egress, directory, cache, scheduler):
    egress.add_job("EG_long", "lecture", started_at_ms=NOW_MS - 200 * MINUTE_MS)
    directory.participants["lecture"] = ["p1", "p2"]
    cache.put("lecture", RecordingSession.begin("EG_long", 0, "teacher", 0))

    report = await scheduler.run_once()

    assert report.stopped_for_duration == ["EG_long"]
    assert egress.stopped == ["EG_long"]
    assert directory.calls == []
    assert "lecture" not in cache


@pytest.mark.asyncio
async def test_sweep_stops_recording_of_empty_room(egress, directory, cache, scheduler):
    egress.add_job("EG_empty", "lecture", started_at_ms=NOW_MS - 10 * MINUTE_MS)
    cache.put("lecture", RecordingSession.begin("EG_empty", 0, "teacher", 0))

    report = await scheduler.run_once()

    assert report.stopped_empty == ["EG_empty"]
    assert egress.stopped == ["EG_empty"]
    assert "lecture" not in cache


@pytest.mark.asyncio
async def test_sweep_leaves_occupied_room_recording(egress, directory, scheduler):
    egress.add_job("EG_busy", "lecture", started_at_ms=NOW_MS - 10 * MINUTE_MS)
    directory.participants["lecture"] = ["p1", "p2"]

    report = await scheduler.run_once()

    assert egress.stopped == []
    assert report.stopped_empty == []
    assert report.stopped_for_duration == []


@pytest.mark.asyncio
async def test_sweep_skips_finished_egress(egress, directory, scheduler):
    egress.add_job("EG_done", "lecture", started_at_ms=NOW_MS - 500 * MINUTE_MS, ended=True)

    await scheduler.run_once()

    assert egress.stopped == []
    assert directory.calls == []


@pytest.mark.asyncio
async def test_failed_max_duration_stop_falls_through_to_empty_check(egress, directory, scheduler):
    egress.add_job("EG_long", "lecture", started_at_ms=NOW_MS - 200 * MINUTE_MS)
    egress.stop_errors["EG_long"] = RemoteCallError("internal", "boom")
    directory.participants["lecture"] = ["p1"]

    report = await scheduler.run_once()

    assert report.stopped_for_duration == []
    assert directory.calls == ["lecture"]


@pytest.mark.asyncio
@pytest.mark.parametrize("code", [DEADLINE_EXCEEDED, FAILED_PRECONDITION])
async def test_benign_stop_errors_are_not_failures(egress, directory, cache, scheduler, code):
    egress.add_job("EG_empty", "lecture", started_at_ms=NOW_MS - MINUTE_MS)
    egress.stop_errors["EG_empty"] = RemoteCallError(code, "egress finalizing")
    cache.put("lecture", RecordingSession.begin("EG_empty", 0, "teacher", 0))

    report = await scheduler.run_once()

    assert report.stopped_empty == ["EG_empty"]
    assert report.failed_rooms == []
    assert "lecture" not in cache


@pytest.mark.asyncio
async def test_one_room_failing_does_not_block_others(egress, directory, scheduler):
    egress.add_job("EG_a", "room-a", started_at_ms=NOW_MS - MINUTE_MS)
    egress.add_job("EG_b", "room-b", started_at_ms=NOW_MS - MINUTE_MS)
    directory.errors["room-a"] = RemoteCallError("unavailable", "room service down")

    report = await scheduler.run_once()

    assert report.failed_rooms == ["room-a"]
    assert report.stopped_empty == ["EG_b"]


@pytest.mark.asyncio
async def test_unexpected_error_is_contained(egress, directory, scheduler):
    egress.add_job("EG_a", "room-a", started_at_ms=NOW_MS - MINUTE_MS)
    egress.add_job("EG_b", "room-b", started_at_ms=NOW_MS - MINUTE_MS)
    directory.errors["room-a"] = ValueError("bad payload")

    report = await scheduler.run_once()

    assert report.failed_rooms == ["room-a"]
    assert report.stopped_empty == ["EG_b"]


@pytest.mark.asyncio
async def test_listing_failure_yields_empty_report(egress, scheduler):
    egress.list_errors = [RemoteCallError("unavailable", "down")]

    report = await scheduler.run_once()

    assert report.stopped_for_duration == []
    assert report.stopped_empty == []
    assert report.failed_rooms == []


@pytest.mark.asyncio
async def test_scheduler_sweeps_immediately_on_start(egress, directory, scheduler):
    egress.add_job("EG_empty", "lecture", started_at_ms=NOW_MS - MINUTE_MS)

    scheduler.start()
    try:
        for _ in range(50):
            if egress.stopped:
                break
            await asyncio.sleep(0.01)
    finally:
        await scheduler.stop()

    assert egress.stopped == ["EG_empty"]
    assert not scheduler.running
    assert scheduler.task is None
