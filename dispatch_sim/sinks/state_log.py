"""CSV state log: one row per tick followed by the summary block."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Optional, TextIO

from dispatch_sim.errors import SinkUnavailable
from dispatch_sim.model import RunSummary, TickSnapshot

from .base import ISnapshotSink


STATE_LOG_HEADER = ("Clock", "Servers", "QueueSize", "Processed", "Blocked")


class StateLogSink(ISnapshotSink):
    """Write the state log opened lazily on first write.

    The file is truncated on its first open and appended to if it is written
    again after ``close()``. ``reset()`` makes the next write truncate again.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._handle: Optional[TextIO] = None
        self._writer = None
        self._started = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def _ensure_open(self) -> None:
        if self._handle is not None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self._path.open("a" if self._started else "w", encoding="utf-8", newline="")
        except OSError as exc:
            raise SinkUnavailable(f"cannot open state log {self._path}: {exc}") from exc
        self._writer = csv.writer(self._handle)
        if not self._started:
            self._started = True
            self._write_row(STATE_LOG_HEADER)

    def _write_row(self, row: tuple | list) -> None:
        assert self._writer is not None
        try:
            self._writer.writerow(row)
        except OSError as exc:
            raise SinkUnavailable(f"cannot write state log {self._path}: {exc}") from exc

    def write_snapshot(self, snapshot: TickSnapshot) -> None:
        self._ensure_open()
        self._write_row(
            (
                snapshot.tick,
                snapshot.worker_count,
                snapshot.queue_size,
                snapshot.total_completed,
                snapshot.total_rejected,
            )
        )

    def write_summary(self, summary: RunSummary) -> None:
        self._ensure_open()
        assert self._handle is not None
        try:
            self._handle.write(
                "Simulation complete\n"
                f"Initial Servers: {summary.initial_worker_count}\n"
                f"Final Servers: {summary.final_worker_count}\n"
                f"Requests Processed: {summary.total_completed}\n"
                f"Blocked Requests: {summary.total_rejected}\n"
            )
        except OSError as exc:
            raise SinkUnavailable(f"cannot write state log {self._path}: {exc}") from exc

    def close(self) -> None:
        if self._handle is None:
            return
        handle = self._handle
        self._handle = None
        self._writer = None
        try:
            handle.close()
        except OSError as exc:
            raise SinkUnavailable(f"cannot close state log {self._path}: {exc}") from exc

    def reset(self) -> None:
        try:
            self.close()
        finally:
            self._started = False
