import asyncio
from types import SimpleNamespace

import aiohttp
import pytest
from livekit import api

from recordingService import FileStartAwaiter, LiveKitEgressSource, RemoteCallError
from recordingService.sources import DEADLINE_EXCEEDED, FAILED_PRECONDITION, UNAVAILABLE, classify_code


def egress_source(list_egress, request_timeout=1):
    lkapi = SimpleNamespace(egress=SimpleNamespace(list_egress=list_egress))
    return LiveKitEgressSource(lkapi, request_timeout)


def test_classify_code_falls_back_to_http_status():
    assert classify_code("deadline_exceeded", None) == DEADLINE_EXCEEDED
    assert classify_code("internal", 412) == FAILED_PRECONDITION
    assert classify_code(None, 408) == DEADLINE_EXCEEDED
    assert classify_code("internal", 500) == "internal"
    assert classify_code(None, None) == "unknown"


@pytest.mark.asyncio
async def test_slow_call_is_deadline_exceeded():
    async def list_egress(request):
        await asyncio.sleep(1)

    source = egress_source(list_egress, request_timeout=0.01)

    with pytest.raises(RemoteCallError) as exc:
        await source.list_jobs("math-101")
    assert exc.value.is_deadline_exceeded


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    aiohttp.ClientConnectionError("connection refused"),
    ConnectionResetError("connection reset by peer"),
])
async def test_transport_failures_are_unavailable(error):
    async def list_egress(request):
        raise error

    with pytest.raises(RemoteCallError) as exc:
        await egress_source(list_egress).list_jobs()
    assert exc.value.code == UNAVAILABLE


@pytest.mark.asyncio
async def test_awaiter_retries_through_socket_errors():
    calls = []
    info = api.EgressInfo(
        egress_id="EG_1",
        room_name="math-101",
        file_results=[api.FileInfo(started_at=7_000_000)],
    )

    async def list_egress(request):
        calls.append(request)
        if len(calls) == 1:
            raise ConnectionResetError("connection reset by peer")
        return api.ListEgressResponse(items=[info])

    awaiter = FileStartAwaiter(egress_source(list_egress), max_wait_ms=500, poll_interval_ms=10)

    assert await awaiter.wait("EG_1") == 7
    assert len(calls) == 2
