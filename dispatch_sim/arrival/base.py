"""Job generator abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod

from dispatch_sim.model import Job


class IJobGenerator(ABC):
    """Plugin contract producing one job per call."""

    @abstractmethod
    def generate(self, tick: int) -> Job:
        """Return a new job created at ``tick``."""
