"""Default metrics implementation."""

from __future__ import annotations

from collections import defaultdict

from dispatch_sim.events import EventType, SimEvent

from .base import IMetric


class CoreMetrics(IMetric):
    """Aggregate throughput, latency and pool-size metrics from the event stream."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._prefilled = 0
        self._admitted = 0
        self._rejected = 0
        self._dispatched = 0
        self._completed = 0
        self._dropped = 0
        self._completed_by_kind: dict[str, int] = defaultdict(int)
        self._wait_ticks: list[int] = []
        self._turnaround_ticks: list[int] = []
        self._scale_up_count = 0
        self._scale_down_count = 0
        self._scale_deferred_count = 0
        self._tick_count = 0
        self._worker_ticks = 0
        self._busy_worker_ticks = 0
        self._peak_workers = 0
        self._peak_queue = 0
        self._event_count = 0
        self._max_time = 0

    def consume(self, event: SimEvent) -> None:
        self._event_count += 1
        self._max_time = max(self._max_time, event.time)
        payload = event.payload

        if event.type == EventType.JOB_PREFILLED:
            self._prefilled += 1
        elif event.type == EventType.JOB_ADMITTED:
            self._admitted += 1
        elif event.type == EventType.JOB_REJECTED:
            self._rejected += 1
        elif event.type == EventType.JOB_DISPATCHED:
            self._dispatched += 1
            wait = payload.get("wait_ticks")
            if isinstance(wait, int):
                self._wait_ticks.append(wait)
        elif event.type == EventType.JOB_COMPLETED:
            self._completed += 1
            kind = payload.get("kind")
            if isinstance(kind, str):
                self._completed_by_kind[kind] += 1
            turnaround = payload.get("turnaround_ticks")
            if isinstance(turnaround, int):
                self._turnaround_ticks.append(turnaround)
        elif event.type == EventType.JOB_DROPPED:
            self._dropped += 1
        elif event.type == EventType.WORKER_ADDED:
            self._scale_up_count += 1
        elif event.type == EventType.WORKER_REMOVED:
            self._scale_down_count += 1
        elif event.type == EventType.SCALE_DEFERRED:
            self._scale_deferred_count += 1
        elif event.type == EventType.TICK_SNAPSHOT:
            workers = int(payload.get("worker_count", 0))
            queue_size = int(payload.get("queue_size", 0))
            self._tick_count += 1
            self._worker_ticks += workers
            self._busy_worker_ticks += int(payload.get("busy_workers", 0))
            self._peak_workers = max(self._peak_workers, workers)
            self._peak_queue = max(self._peak_queue, queue_size)

    def report(self) -> dict:
        arrivals = self._admitted + self._rejected
        avg_wait = sum(self._wait_ticks) / len(self._wait_ticks) if self._wait_ticks else 0.0
        avg_turnaround = (
            sum(self._turnaround_ticks) / len(self._turnaround_ticks) if self._turnaround_ticks else 0.0
        )
        return {
            "jobs_prefilled": self._prefilled,
            "jobs_admitted": self._admitted,
            "jobs_rejected": self._rejected,
            "jobs_dispatched": self._dispatched,
            "jobs_completed": self._completed,
            "jobs_dropped": self._dropped,
            "completed_by_kind": dict(self._completed_by_kind),
            "rejection_ratio": self._rejected / arrivals if arrivals else 0.0,
            "avg_wait_ticks": avg_wait,
            "avg_turnaround_ticks": avg_turnaround,
            "scale_up_count": self._scale_up_count,
            "scale_down_count": self._scale_down_count,
            "scale_deferred_count": self._scale_deferred_count,
            "peak_workers": self._peak_workers,
            "avg_workers": self._worker_ticks / self._tick_count if self._tick_count else 0.0,
            "peak_queue_size": self._peak_queue,
            "worker_utilization": (
                self._busy_worker_ticks / self._worker_ticks if self._worker_ticks else 0.0
            ),
            "event_count": self._event_count,
            "max_time": self._max_time,
        }
