"""FIFO queue of pending jobs."""

from __future__ import annotations

from collections import deque
from typing import Iterator

from dispatch_sim.errors import EmptyQueueError
from dispatch_sim.model import Job


class JobQueue:
    """Unbounded FIFO; every job leaves exactly once, in arrival order."""

    def __init__(self) -> None:
        self._items: deque[Job] = deque()

    def push(self, job: Job) -> None:
        self._items.append(job)

    def pop(self) -> Job:
        if not self._items:
            raise EmptyQueueError("pop from empty job queue")
        return self._items.popleft()

    def size(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Job]:
        return iter(self._items)
