"""Job-generator registry."""

from __future__ import annotations

from collections.abc import Callable
from random import Random
from typing import Any

from .base import IJobGenerator
from .builtins import UniformJobGenerator


JobGeneratorFactory = Callable[[Random, dict[str, Any]], IJobGenerator]


def _uniform_factory(rng: Random, params: dict[str, Any]) -> IJobGenerator:
    return UniformJobGenerator(
        rng,
        streaming_duration=tuple(params.get("streaming_duration", (12, 15))),
        batch_duration=tuple(params.get("batch_duration", (30, 40))),
    )


_REGISTRY: dict[str, JobGeneratorFactory] = {
    "uniform": _uniform_factory,
    "default": _uniform_factory,
}


def register_job_generator(name: str, factory: JobGeneratorFactory) -> None:
    _REGISTRY[name.strip().lower()] = factory


def create_job_generator(name: str, rng: Random, params: dict[str, Any] | None = None) -> IJobGenerator:
    key = name.strip().lower()
    if key not in _REGISTRY:
        raise ValueError(f"unknown job generator {name}")
    return _REGISTRY[key](rng, params or {})
