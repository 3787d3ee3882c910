"""Metric collector contract."""

from __future__ import annotations

from abc import ABC, abstractmethod

from dispatch_sim.events import SimEvent


class IMetric(ABC):
    """Event-bus subscriber that folds the event stream into a flat report."""

    @abstractmethod
    def consume(self, event: SimEvent) -> None:
        """Fold one published event into the running totals."""

    @abstractmethod
    def report(self) -> dict:
        """Return a JSON-serializable summary of everything consumed so far."""

    @abstractmethod
    def reset(self) -> None:
        """Forget all consumed events; called on every engine rebuild."""
