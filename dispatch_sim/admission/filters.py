"""Admission filters deciding which arrivals are turned away."""

from __future__ import annotations

from abc import ABC, abstractmethod

from dispatch_sim.model import Job


class IAdmissionFilter(ABC):
    """Pure predicate over arriving jobs."""

    @abstractmethod
    def is_rejected(self, job: Job) -> bool:
        """Return True when the job must not enter the queue."""


class OriginRangeFilter(IAdmissionFilter):
    """Reject jobs whose origin's first octet falls in an inclusive range."""

    def __init__(self, low: int = 192, high: int = 200) -> None:
        if not 0 <= low <= high <= 255:
            raise ValueError(f"blocked origin range must satisfy 0 <= low <= high <= 255, got ({low}, {high})")
        self._low = low
        self._high = high

    @property
    def blocked_range(self) -> tuple[int, int]:
        return self._low, self._high

    def is_rejected(self, job: Job) -> bool:
        first_octet = int(job.origin.split(".", 1)[0])
        return self._low <= first_octet <= self._high


class AllowAllFilter(IAdmissionFilter):
    def is_rejected(self, job: Job) -> bool:  # noqa: ARG002
        return False
