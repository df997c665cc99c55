"""
Recording lifecycle engine for LiveKit room egress
"""

from .state import RecordingSession, RecordingStateCache, UNKNOWN_IDENTITY
from .sources import (
    RemoteCallError,
    RemoteJob,
    OutputSpec,
    LiveKitEgressSource,
    LiveKitRoomDirectory,
    DEADLINE_EXCEEDED,
    FAILED_PRECONDITION,
)
from .reconciler import Reconciler
from .awaiter import FileStartAwaiter, EgressEndedBeforeFileStarted
from .lifecycle import (
    RecordingLifecycle,
    RecordingStartError,
    StartResult,
    StopOutcome,
    StopResult,
    StatusResult,
)
from .cleanup import CleanupScheduler, SweepReport

__all__ = [
    "RecordingSession",
    "RecordingStateCache",
    "UNKNOWN_IDENTITY",
    "RemoteCallError",
    "RemoteJob",
    "OutputSpec",
    "LiveKitEgressSource",
    "LiveKitRoomDirectory",
    "DEADLINE_EXCEEDED",
    "FAILED_PRECONDITION",
    "Reconciler",
    "FileStartAwaiter",
    "EgressEndedBeforeFileStarted",
    "RecordingLifecycle",
    "RecordingStartError",
    "StartResult",
    "StopOutcome",
    "StopResult",
    "StatusResult",
    "CleanupScheduler",
    "SweepReport",
]
