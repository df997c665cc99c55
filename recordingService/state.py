"""
Local, advisory view of which room is being recorded by which egress.

The cache never decides anything on its own: every lifecycle operation
reconciles it against LiveKit first. It is lost on restart by design of the
service (LiveKit stays the source of truth).
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional

UNKNOWN_IDENTITY = "unknown"


@dataclass
class _RoomLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


@dataclass
class RecordingSession:
    """One room's recording as this process last saw it."""
    job_id: str
    started_at_ms: int
    started_by: str
    not_before_stop_ms: int

    @classmethod
    def begin(cls, job_id: str, started_at_ms: int, started_by: Optional[str], min_active_ms: int) -> "RecordingSession":
        return cls(
            job_id=job_id,
            started_at_ms=started_at_ms,
            started_by=started_by or UNKNOWN_IDENTITY,
            not_before_stop_ms=started_at_ms + max(0, min_active_ms),
        )

    def duration_seconds(self, now_ms: int) -> int:
        return max(0, (now_ms - self.started_at_ms) // 1000)


class RecordingStateCache:
    """
    Process-wide room -> RecordingSession map.

    All mutations happen on the event loop thread, so individual reads and
    writes are atomic. Multi-step decisions (start, synchronous stop) are
    serialized per room through room_lock().
    """

    def __init__(self):
        self._sessions: Dict[str, RecordingSession] = {}
        self._locks: Dict[str, _RoomLock] = {}

    def get(self, room_name: str) -> Optional[RecordingSession]:
        return self._sessions.get(room_name)

    def put(self, room_name: str, session: RecordingSession) -> None:
        self._sessions[room_name] = session

    def discard(self, room_name: str, job_id: Optional[str] = None) -> bool:
        """
        Remove the entry for a room.

        When job_id is given the entry is only removed if it still refers to
        that egress, so a late completion cannot clear a newer recording.
        """
        session = self._sessions.get(room_name)
        if session is None:
            return False
        if job_id is not None and session.job_id != job_id:
            return False
        del self._sessions[room_name]
        return True

    @asynccontextmanager
    async def room_lock(self, room_name: str) -> AsyncIterator[None]:
        """
        Hold the room's lock for the duration of the block.

        The lock is dropped once its last holder or waiter leaves, so rooms
        that were only asked about once leave nothing behind.
        """
        entry = self._locks.get(room_name)
        if entry is None:
            entry = self._locks[room_name] = _RoomLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(room_name) is entry:
                del self._locks[room_name]

    def locked_rooms(self) -> int:
        """Rooms with a lock currently held or awaited."""
        return len(self._locks)

    def __contains__(self, room_name: str) -> bool:
        return room_name in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
