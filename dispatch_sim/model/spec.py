"""Configuration domain models and semantic validation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .runtime import ShrinkMode


DurationRange = tuple[int, int]


def _check_range(name: str, value: tuple[int, int], *, lower: int, upper: int | None = None) -> None:
    low, high = value
    if low < lower:
        raise ValueError(f"{name} lower bound must be >= {lower}")
    if upper is not None and high > upper:
        raise ValueError(f"{name} upper bound must be <= {upper}")
    if high < low:
        raise ValueError(f"{name} upper bound must be >= lower bound")


class SimSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    initial_workers: int = Field(ge=1)
    running_ticks: int = Field(ge=1)
    seed: int = 42
    event_id_mode: str = "deterministic"


class ArrivalSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    generator: str = "uniform"
    admission_probability: float = Field(default=0.9, ge=0, le=1)
    initial_queue_multiplier: int = Field(default=20, ge=0)


class JobMixSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    streaming_duration: DurationRange = (12, 15)
    batch_duration: DurationRange = (30, 40)

    @model_validator(mode="after")
    def validate_ranges(self) -> "JobMixSpec":
        _check_range("jobs.streaming_duration", self.streaming_duration, lower=1)
        _check_range("jobs.batch_duration", self.batch_duration, lower=1)
        return self


class AdmissionSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    filter: str = "origin_range"
    blocked_origin_range: tuple[int, int] = (192, 200)

    @model_validator(mode="after")
    def validate_blocked_range(self) -> "AdmissionSpec":
        _check_range("admission.blocked_origin_range", self.blocked_origin_range, lower=0, upper=255)
        return self


class ScalingSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    policy: str = "threshold"
    scale_up_ratio: float = Field(default=25, gt=0)
    scale_down_ratio: float = Field(default=15, ge=0)
    # shrink requires worker_count >= this; 2 keeps the pool at one worker or more
    min_workers_for_shrink: int = Field(default=2, ge=2)
    cooldown_period: int = Field(default=3, ge=0)
    shrink_mode: ShrinkMode = ShrinkMode.IDLE_ONLY


class ModelSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str
    sim: SimSpec
    arrival: ArrivalSpec = Field(default_factory=ArrivalSpec)
    jobs: JobMixSpec = Field(default_factory=JobMixSpec)
    admission: AdmissionSpec = Field(default_factory=AdmissionSpec)
    scaling: ScalingSpec = Field(default_factory=ScalingSpec)

    @property
    def prefill_size(self) -> int:
        return self.sim.initial_workers * self.arrival.initial_queue_multiplier
