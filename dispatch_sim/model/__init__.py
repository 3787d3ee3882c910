"""Model package exports."""

from .runtime import (
    Job,
    JobKind,
    RunSummary,
    ScaleDecision,
    SchedulerCounters,
    ShrinkMode,
    TickSnapshot,
    WorkerState,
)
from .spec import (
    AdmissionSpec,
    ArrivalSpec,
    JobMixSpec,
    ModelSpec,
    ScalingSpec,
    SimSpec,
)

__all__ = [
    "AdmissionSpec",
    "ArrivalSpec",
    "Job",
    "JobKind",
    "JobMixSpec",
    "ModelSpec",
    "RunSummary",
    "ScaleDecision",
    "ScalingSpec",
    "SchedulerCounters",
    "ShrinkMode",
    "SimSpec",
    "TickSnapshot",
    "WorkerState",
]
