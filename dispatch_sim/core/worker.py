"""Single-slot worker state machine."""

from __future__ import annotations

from typing import Optional

from dispatch_sim.errors import WorkerBusyError
from dispatch_sim.model import Job, WorkerState


class Worker:
    """Holds at most one job and burns one tick of it per simulation step.

    Invariant: BUSY implies ``current_job`` is set and ``remaining_ticks > 0``;
    IDLE implies no job and ``remaining_ticks == 0``.
    """

    __slots__ = ("_worker_id", "_state", "_current_job", "_remaining_ticks")

    def __init__(self, worker_id: int) -> None:
        self._worker_id = worker_id
        self._state = WorkerState.IDLE
        self._current_job: Optional[Job] = None
        self._remaining_ticks = 0

    def __repr__(self) -> str:
        return (
            f"Worker(id={self._worker_id}, state={self._state.value}, "
            f"remaining_ticks={self._remaining_ticks})"
        )

    @property
    def worker_id(self) -> int:
        return self._worker_id

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def current_job(self) -> Optional[Job]:
        return self._current_job

    @property
    def remaining_ticks(self) -> int:
        return self._remaining_ticks

    @property
    def is_idle(self) -> bool:
        return self._state is WorkerState.IDLE

    def assign(self, job: Job) -> None:
        if self._state is WorkerState.BUSY:
            raise WorkerBusyError(
                f"worker {self._worker_id} is busy with {self._current_job.job_id if self._current_job else '?'}, "
                f"cannot take {job.job_id}"
            )
        self._current_job = job
        self._remaining_ticks = job.service_duration
        self._state = WorkerState.BUSY

    def tick(self) -> Optional[Job]:
        """Advance one tick; return the job that finished on this tick, if any."""
        if self._state is not WorkerState.BUSY or self._remaining_ticks <= 0:
            return None
        self._remaining_ticks -= 1
        if self._remaining_ticks > 0:
            return None
        finished = self._current_job
        self._current_job = None
        self._state = WorkerState.IDLE
        return finished

    def evict(self) -> Optional[Job]:
        """Clear the worker unconditionally and return whatever it was running."""
        job = self._current_job
        self._current_job = None
        self._remaining_ticks = 0
        self._state = WorkerState.IDLE
        return job
