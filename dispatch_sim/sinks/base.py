"""Output sink abstraction for per-tick snapshots and the run summary."""

from __future__ import annotations

from abc import ABC, abstractmethod

from dispatch_sim.model import RunSummary, TickSnapshot


class ISnapshotSink(ABC):
    """Best-effort, append-only consumer of simulation state.

    Implementations raise ``SinkUnavailable`` when the underlying medium cannot
    be written; the engine logs and carries on.
    """

    @abstractmethod
    def write_snapshot(self, snapshot: TickSnapshot) -> None:
        """Record the state at the end of one tick."""

    @abstractmethod
    def write_summary(self, summary: RunSummary) -> None:
        """Record the end-of-run summary."""

    def close(self) -> None:
        """Release any held resource. Must be idempotent."""

    def reset(self) -> None:
        """Forget per-run state so the next write starts a fresh run."""

    def __enter__(self) -> "ISnapshotSink":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
