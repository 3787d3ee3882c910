"""Synchronous in-process event bus."""

from __future__ import annotations

import random
import uuid
from typing import Callable

from .types import EventType, SimEvent


EventHandler = Callable[[SimEvent], None]

EVENT_ID_MODES = frozenset({"deterministic", "random", "seeded_random"})


class EventBus:
    """Stamp each published event with ``seq`` and an id, then fan it out.

    Handlers run in subscription order on the publishing thread. Id modes:
    ``deterministic`` gives ``evt-<seq>``, ``random`` a uuid4 and
    ``seeded_random`` 128 hex bits from a private ``Random(event_id_seed)``,
    which never touches the simulation's own random source.
    """

    def __init__(self, *, event_id_mode: str = "deterministic", event_id_seed: int | None = None) -> None:
        mode = event_id_mode.strip().lower()
        if mode not in EVENT_ID_MODES:
            raise ValueError(f"invalid event_id_mode='{event_id_mode}', expected one of {sorted(EVENT_ID_MODES)}")
        id_rng = random.Random(event_id_seed)
        factories: dict[str, Callable[[int], str]] = {
            "deterministic": lambda seq: f"evt-{seq:08d}",
            "random": lambda _seq: str(uuid.uuid4()),
            "seeded_random": lambda _seq: f"{id_rng.getrandbits(128):032x}",
        }
        self._make_id = factories[mode]
        self._subscribers: list[EventHandler] = []
        self._next_seq = 0

    def subscribe(self, handler: EventHandler) -> None:
        self._subscribers.append(handler)

    def publish(
        self,
        *,
        event_type: EventType,
        time: int,
        correlation_id: str,
        job_id: str | None = None,
        worker_id: int | None = None,
        payload: dict | None = None,
    ) -> SimEvent:
        seq = self._next_seq
        self._next_seq += 1
        event = SimEvent(
            event_id=self._make_id(seq),
            seq=seq,
            correlation_id=correlation_id,
            time=time,
            type=event_type,
            job_id=job_id,
            worker_id=worker_id,
            payload=payload or {},
        )
        for handler in tuple(self._subscribers):
            handler(event)
        return event

    def reset(self) -> None:
        self._next_seq = 0
        self._subscribers.clear()
