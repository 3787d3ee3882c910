"""Scaling policy registry."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .base import IScalingPolicy
from .threshold import FixedScalingPolicy, ThresholdScalingPolicy


ScalingPolicyFactory = Callable[[dict[str, Any]], IScalingPolicy]


def _threshold_factory(params: dict[str, Any]) -> IScalingPolicy:
    return ThresholdScalingPolicy(
        scale_up_ratio=float(params.get("scale_up_ratio", 25)),
        scale_down_ratio=float(params.get("scale_down_ratio", 15)),
        min_workers_for_shrink=int(params.get("min_workers_for_shrink", 2)),
        cooldown_period=int(params.get("cooldown_period", 3)),
    )


_REGISTRY: dict[str, ScalingPolicyFactory] = {
    "threshold": _threshold_factory,
    "default": _threshold_factory,
    "fixed": lambda _params: FixedScalingPolicy(),
}


def register_scaling_policy(name: str, factory: ScalingPolicyFactory) -> None:
    _REGISTRY[name.strip().lower()] = factory


def create_scaling_policy(name: str = "default", params: dict[str, Any] | None = None) -> IScalingPolicy:
    key = name.strip().lower()
    if key not in _REGISTRY:
        raise ValueError(f"unknown scaling policy {name}")
    return _REGISTRY[key](params or {})
