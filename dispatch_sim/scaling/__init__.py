"""Scaling policy exports."""

from .base import IScalingPolicy
from .registry import create_scaling_policy, register_scaling_policy
from .threshold import FixedScalingPolicy, ThresholdScalingPolicy

__all__ = [
    "FixedScalingPolicy",
    "IScalingPolicy",
    "ThresholdScalingPolicy",
    "create_scaling_policy",
    "register_scaling_policy",
]
