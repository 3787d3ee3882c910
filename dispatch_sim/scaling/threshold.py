"""Queue-depth threshold scaling with a cooldown window."""

from __future__ import annotations

from dispatch_sim.model import ScaleDecision

from .base import IScalingPolicy


class ThresholdScalingPolicy(IScalingPolicy):
    """Grow above ``scale_up_ratio`` jobs per worker, shrink below ``scale_down_ratio``.

    A pending cooldown is consumed before any threshold is looked at, so the
    ``cooldown_period`` ticks after a decision never produce another one.
    """

    def __init__(
        self,
        *,
        scale_up_ratio: float = 25,
        scale_down_ratio: float = 15,
        min_workers_for_shrink: int = 2,
        cooldown_period: int = 3,
    ) -> None:
        if scale_up_ratio <= 0:
            raise ValueError("scale_up_ratio must be > 0")
        if scale_down_ratio < 0:
            raise ValueError("scale_down_ratio must be >= 0")
        if min_workers_for_shrink < 2:
            raise ValueError("min_workers_for_shrink must be >= 2")
        if cooldown_period < 0:
            raise ValueError("cooldown_period must be >= 0")
        self._scale_up_ratio = scale_up_ratio
        self._scale_down_ratio = scale_down_ratio
        self._min_workers_for_shrink = min_workers_for_shrink
        self._cooldown_period = cooldown_period
        self._cooldown_remaining = 0

    @property
    def cooldown_remaining(self) -> int:
        return self._cooldown_remaining

    @property
    def cooldown_period(self) -> int:
        return self._cooldown_period

    def evaluate(self, queue_size: int, worker_count: int) -> ScaleDecision:
        if self._cooldown_remaining > 0:
            self._cooldown_remaining -= 1
            return ScaleDecision.NONE

        if queue_size > self._scale_up_ratio * worker_count:
            self._cooldown_remaining = self._cooldown_period
            return ScaleDecision.GROW
        if (
            queue_size < self._scale_down_ratio * worker_count
            and worker_count >= self._min_workers_for_shrink
        ):
            self._cooldown_remaining = self._cooldown_period
            return ScaleDecision.SHRINK
        return ScaleDecision.NONE

    def reset(self) -> None:
        self._cooldown_remaining = 0


class FixedScalingPolicy(IScalingPolicy):
    """Never resize the pool."""

    def evaluate(self, queue_size: int, worker_count: int) -> ScaleDecision:  # noqa: ARG002
        return ScaleDecision.NONE
