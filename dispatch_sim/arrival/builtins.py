"""Built-in job generators."""

from __future__ import annotations

import itertools
from random import Random

from dispatch_sim.model import Job, JobKind

from .base import IJobGenerator


def random_address(rng: Random) -> str:
    """Draw a dotted four-octet address with every octet in [0, 255]."""

    return ".".join(str(rng.randint(0, 255)) for _ in range(4))


class UniformJobGenerator(IJobGenerator):
    """Uniform kind, uniform kind-specific duration, random origin/destination."""

    def __init__(
        self,
        rng: Random,
        *,
        streaming_duration: tuple[int, int] = (12, 15),
        batch_duration: tuple[int, int] = (30, 40),
        id_prefix: str = "job",
    ) -> None:
        for name, (low, high) in (
            ("streaming_duration", streaming_duration),
            ("batch_duration", batch_duration),
        ):
            if low < 1 or high < low:
                raise ValueError(f"{name} must satisfy 1 <= low <= high, got ({low}, {high})")
        self._rng = rng
        self._durations = {
            JobKind.STREAMING: (int(streaming_duration[0]), int(streaming_duration[1])),
            JobKind.BATCH: (int(batch_duration[0]), int(batch_duration[1])),
        }
        # Ids come from a counter, not the rng, so they never shift the random stream.
        self._ids = itertools.count(1)
        self._id_prefix = id_prefix

    def generate(self, tick: int) -> Job:
        origin = random_address(self._rng)
        destination = random_address(self._rng)
        kind = self._rng.choice((JobKind.STREAMING, JobKind.BATCH))
        low, high = self._durations[kind]
        return Job(
            job_id=f"{self._id_prefix}-{next(self._ids):06d}",
            origin=origin,
            destination=destination,
            kind=kind,
            service_duration=self._rng.randint(low, high),
            created_at=tick,
        )
