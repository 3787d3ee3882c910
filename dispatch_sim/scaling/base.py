"""Scaling policy abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod

from dispatch_sim.model import ScaleDecision


class IScalingPolicy(ABC):
    """Stateful decision function evaluated once per tick."""

    @property
    def cooldown_remaining(self) -> int:
        return 0

    @property
    def cooldown_period(self) -> int:
        return 0

    @abstractmethod
    def evaluate(self, queue_size: int, worker_count: int) -> ScaleDecision:
        """Return at most one unit of growth or shrink for this tick."""

    def reset(self) -> None:
        """Drop any carried state."""
