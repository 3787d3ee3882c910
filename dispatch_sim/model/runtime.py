"""Runtime types shared across the simulation engine and plugins."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class JobKind(str, Enum):
    STREAMING = "streaming"
    BATCH = "batch"


class WorkerState(str, Enum):
    IDLE = "idle"
    BUSY = "busy"


class ScaleDecision(str, Enum):
    NONE = "none"
    GROW = "grow"
    SHRINK = "shrink"


class ShrinkMode(str, Enum):
    """How a shrink decision picks the worker to remove."""

    IDLE_ONLY = "idle_only"
    LAST = "last"


@dataclass(frozen=True, slots=True)
class Job:
    """One unit of work travelling from the queue to exactly one worker."""

    job_id: str
    origin: str
    destination: str
    kind: JobKind
    service_duration: int
    created_at: int

    def __post_init__(self) -> None:
        if self.service_duration < 1:
            raise ValueError(f"job {self.job_id} service_duration must be >= 1")
        if self.created_at < 0:
            raise ValueError(f"job {self.job_id} created_at must be >= 0")


@dataclass(slots=True)
class SchedulerCounters:
    """Process-wide counters; all but the cooldown mirror only ever grow."""

    current_tick: int = 0
    total_admitted: int = 0
    total_rejected: int = 0
    total_completed: int = 0
    scale_cooldown_remaining: int = 0
    total_prefilled: int = 0
    total_dispatched: int = 0
    total_dropped: int = 0
    total_arrivals: int = 0
    sink_failures: int = 0


@dataclass(frozen=True, slots=True)
class TickSnapshot:
    tick: int
    worker_count: int
    queue_size: int
    total_completed: int
    total_rejected: int
    total_admitted: int = 0
    busy_workers: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "tick": self.tick,
            "worker_count": self.worker_count,
            "queue_size": self.queue_size,
            "total_completed": self.total_completed,
            "total_rejected": self.total_rejected,
            "total_admitted": self.total_admitted,
            "busy_workers": self.busy_workers,
        }


@dataclass(frozen=True, slots=True)
class RunSummary:
    initial_worker_count: int
    final_worker_count: int
    total_completed: int
    total_rejected: int
    total_admitted: int = 0
    total_prefilled: int = 0
    ticks: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "initial_worker_count": self.initial_worker_count,
            "final_worker_count": self.final_worker_count,
            "total_completed": self.total_completed,
            "total_rejected": self.total_rejected,
            "total_admitted": self.total_admitted,
            "total_prefilled": self.total_prefilled,
            "ticks": self.ticks,
        }
