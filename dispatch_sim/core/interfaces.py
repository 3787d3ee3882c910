"""Engine lifecycle contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from dispatch_sim.events import SimEvent
from dispatch_sim.model import ModelSpec


class ISimEngine(ABC):
    """Build once, then drive with run() or step(); control calls act between ticks."""

    @abstractmethod
    def build(self, spec: ModelSpec) -> None:
        """Discard any previous run, create workers and prefill the queue."""

    @abstractmethod
    def run(self, until: int | None = None) -> None:
        """Run ticks until the horizon (defaults to the configured running ticks)."""

    @abstractmethod
    def step(self, ticks: int = 1) -> None:
        """Advance exactly ``ticks`` ticks, or fewer if the run ends first."""

    @abstractmethod
    def pause(self) -> None:
        """Pause the tick loop at the next tick boundary."""

    @abstractmethod
    def resume(self) -> None:
        """Resume a paused tick loop."""

    @abstractmethod
    def stop(self) -> None:
        """Stop the tick loop at the next tick boundary; later run() calls do nothing."""

    @abstractmethod
    def reset(self) -> None:
        """Drop all runtime state; build() must be called again."""

    @abstractmethod
    def subscribe(self, handler: Callable[[SimEvent], None]) -> None:
        """Register a handler that survives later rebuilds."""
