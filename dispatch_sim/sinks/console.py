"""Human-readable console progress lines."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from dispatch_sim.errors import SinkUnavailable
from dispatch_sim.model import RunSummary, TickSnapshot

from .base import ISnapshotSink


class ConsoleSink(ISnapshotSink):
    """Print a status line every ``every`` ticks and the final summary."""

    def __init__(self, every: int = 50, stream: Optional[TextIO] = None) -> None:
        if every < 1:
            raise ValueError("console interval must be >= 1")
        self._every = every
        self._stream = stream

    def _emit(self, text: str) -> None:
        # Resolve stdout lazily so redirection after construction is honoured.
        stream = self._stream if self._stream is not None else sys.stdout
        try:
            stream.write(text)
            stream.flush()
        except (OSError, ValueError) as exc:
            raise SinkUnavailable(f"console unavailable: {exc}") from exc

    def write_snapshot(self, snapshot: TickSnapshot) -> None:
        if snapshot.tick % self._every != 0:
            return
        self._emit(
            f"[Tick {snapshot.tick}] Workers: {snapshot.worker_count}, "
            f"Queue: {snapshot.queue_size}, Completed: {snapshot.total_completed}, "
            f"Rejected: {snapshot.total_rejected}\n"
        )

    def write_summary(self, summary: RunSummary) -> None:
        self._emit(
            "\nSimulation complete\n"
            f"Initial Workers: {summary.initial_worker_count}\n"
            f"Final Workers: {summary.final_worker_count}\n"
            f"Jobs Completed: {summary.total_completed}\n"
            f"Jobs Rejected: {summary.total_rejected}\n"
        )
