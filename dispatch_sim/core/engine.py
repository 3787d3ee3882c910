"""SimPy-clocked tick engine for the dispatch simulation."""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import replace
import itertools
import logging
import random
from typing import Any, Callable, Optional

import simpy

from dispatch_sim.admission import IAdmissionFilter, create_admission_filter
from dispatch_sim.arrival import IJobGenerator, create_job_generator
from dispatch_sim.errors import ConfigError, SinkUnavailable
from dispatch_sim.events import EVENT_ID_MODES, EventBus, EventType, SimEvent
from dispatch_sim.metrics import CoreMetrics, IMetric
from dispatch_sim.model import (
    Job,
    ModelSpec,
    RunSummary,
    ScaleDecision,
    SchedulerCounters,
    ShrinkMode,
    TickSnapshot,
)
from dispatch_sim.scaling import IScalingPolicy, create_scaling_policy
from dispatch_sim.sinks import ISnapshotSink

from .interfaces import ISimEngine
from .job_queue import JobQueue
from .worker import Worker


logger = logging.getLogger(__name__)


class DispatchEngine(ISimEngine):
    """Tick-driven dispatcher: admit, advance workers, dispatch, scale, snapshot.

    The order of the five per-tick phases is part of the observable contract;
    ``stop()`` and ``pause()`` only ever take effect between ticks.
    """

    CORRELATION_ID = "engine"

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        job_generator: IJobGenerator | None = None,
        admission_filter: IAdmissionFilter | None = None,
        scaling_policy: IScalingPolicy | None = None,
        metrics: list[IMetric] | None = None,
        sinks: list[ISnapshotSink] | None = None,
    ) -> None:
        self._external_rng = rng
        self._external_generator = job_generator
        self._external_filter = admission_filter
        self._external_policy = scaling_policy
        self._metrics = metrics or [CoreMetrics()]
        self._sinks: list[ISnapshotSink] = list(sinks or [])
        self._subscribers: list[Callable[[SimEvent], None]] = []
        self._event_id_mode = "deterministic"
        self._event_id_seed: int | None = None

        self._env = simpy.Environment()
        self._event_bus = self._create_event_bus()
        self._events: list[SimEvent] = []
        self._setup_event_pipeline()

        self._spec: ModelSpec | None = None
        self._rng = random.Random(0)
        self._generator: IJobGenerator | None = None
        self._filter: IAdmissionFilter | None = None
        self._policy: IScalingPolicy | None = None

        self._queue = JobQueue()
        self._workers: list[Worker] = []
        self._worker_ids = itertools.count()
        self._counters = SchedulerCounters()
        self._summary: RunSummary | None = None

        self._paused = False
        self._stopped = False

    def __enter__(self) -> "DispatchEngine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def subscribe(self, handler: Callable[[SimEvent], None]) -> None:
        if handler in self._subscribers:
            return
        self._subscribers.append(handler)
        self._event_bus.subscribe(handler)

    def add_sink(self, sink: ISnapshotSink) -> None:
        if sink not in self._sinks:
            self._sinks.append(sink)

    def build(self, spec: ModelSpec) -> None:
        self._validate_spec(spec)
        self._event_id_mode = spec.sim.event_id_mode.strip().lower()
        self._event_id_seed = spec.sim.seed
        self.reset()
        self._spec = spec
        self._rng = self._external_rng if self._external_rng is not None else random.Random(spec.sim.seed)

        try:
            self._generator = self._external_generator or create_job_generator(
                spec.arrival.generator,
                self._rng,
                spec.jobs.model_dump(),
            )
            self._filter = self._external_filter or create_admission_filter(
                spec.admission.filter,
                spec.admission.model_dump(exclude={"filter"}),
            )
            self._policy = self._external_policy or create_scaling_policy(
                spec.scaling.policy,
                spec.scaling.model_dump(exclude={"policy", "shrink_mode"}),
            )
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        for _ in range(spec.sim.initial_workers):
            self._workers.append(Worker(next(self._worker_ids)))
        self._prefill(spec.prefill_size)

    def run(self, until: int | None = None) -> None:
        if self._spec is None:
            raise RuntimeError("build() must be called before run()")
        horizon = self._resolve_horizon(until)

        with ExitStack() as stack:
            for sink in list(self._sinks):
                stack.callback(self._close_sink, sink)
            while self._counters.current_tick < horizon:
                if self._stopped or self._paused:
                    break
                self._advance_tick()
            self._finish_if_complete()

    def step(self, ticks: int = 1) -> None:
        if self._spec is None:
            raise RuntimeError("build() must be called before step()")
        if ticks < 1:
            raise ValueError("step ticks must be >= 1")
        for _ in range(ticks):
            if self._stopped or self._counters.current_tick >= self._spec.sim.running_ticks:
                break
            self._advance_tick()
        self._finish_if_complete()

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def stop(self) -> None:
        self._stopped = True

    def close(self) -> None:
        for sink in list(self._sinks):
            self._close_sink(sink)

    def reset(self) -> None:
        for sink in list(self._sinks):
            self._reset_sink(sink)
        self._env = simpy.Environment()
        for metric in self._metrics:
            metric.reset()
        self._event_bus = self._create_event_bus()
        self._events = []
        self._setup_event_pipeline()

        self._spec = None
        self._generator = None
        self._filter = None
        if self._external_policy is not None:
            self._external_policy.reset()
        self._policy = None
        self._queue = JobQueue()
        self._workers = []
        self._worker_ids = itertools.count()
        self._counters = SchedulerCounters()
        self._summary = None
        self._paused = False
        self._stopped = False

    def _setup_event_pipeline(self) -> None:
        self._event_bus.subscribe(self._events.append)
        for metric in self._metrics:
            self._event_bus.subscribe(metric.consume)
        for handler in self._subscribers:
            self._event_bus.subscribe(handler)

    def _create_event_bus(self) -> EventBus:
        return EventBus(
            event_id_mode=self._event_id_mode,
            event_id_seed=self._event_id_seed,
        )

    @property
    def events(self) -> list[SimEvent]:
        return list(self._events)

    @property
    def now(self) -> int:
        return int(self._env.now)

    @property
    def counters(self) -> SchedulerCounters:
        return replace(self._counters)

    @property
    def workers(self) -> tuple[Worker, ...]:
        return tuple(self._workers)

    @property
    def worker_count(self) -> int:
        return len(self._workers)

    @property
    def queue_size(self) -> int:
        return self._queue.size()

    @property
    def finished(self) -> bool:
        return self._summary is not None

    @property
    def summary(self) -> Optional[RunSummary]:
        return self._summary

    def metric_report(self) -> dict:
        merged: dict[str, Any] = {}
        for metric in self._metrics:
            merged.update(metric.report())
        merged["final_worker_count"] = len(self._workers)
        merged["final_queue_size"] = self._queue.size()
        merged["sink_failures"] = self._counters.sink_failures
        return merged

    @staticmethod
    def _validate_spec(spec: ModelSpec) -> None:
        # Checked again here because model_construct() skips pydantic validation.
        if spec.sim.initial_workers < 1:
            raise ConfigError("sim.initial_workers must be >= 1")
        if spec.sim.running_ticks < 1:
            raise ConfigError("sim.running_ticks must be >= 1")
        mode = str(spec.sim.event_id_mode).strip().lower()
        if mode not in EVENT_ID_MODES:
            raise ConfigError(
                f"invalid sim.event_id_mode='{spec.sim.event_id_mode}', "
                "expected deterministic|random|seeded_random"
            )

    def _resolve_horizon(self, until: int | None) -> int:
        assert self._spec is not None
        running_ticks = self._spec.sim.running_ticks
        if until is None:
            return running_ticks
        if until < 0:
            raise ValueError("until must be >= 0")
        return min(int(until), running_ticks)

    def _publish(
        self,
        event_type: EventType,
        *,
        job_id: str | None = None,
        worker_id: int | None = None,
        payload: dict | None = None,
    ) -> SimEvent:
        return self._event_bus.publish(
            event_type=event_type,
            time=self._counters.current_tick,
            correlation_id=self.CORRELATION_ID,
            job_id=job_id,
            worker_id=worker_id,
            payload=payload,
        )

    def _prefill(self, count: int) -> None:
        assert self._generator is not None
        for _ in range(count):
            job = self._generator.generate(0)
            self._queue.push(job)
            self._counters.total_prefilled += 1
            self._publish(EventType.JOB_PREFILLED, job_id=job.job_id, payload=self._job_payload(job))

    @staticmethod
    def _job_payload(job: Job) -> dict[str, Any]:
        return {
            "origin": job.origin,
            "destination": job.destination,
            "kind": job.kind.value,
            "service_duration": job.service_duration,
            "created_at": job.created_at,
        }

    def _advance_tick(self) -> None:
        self._env.run(until=self._env.timeout(1))
        tick = int(self._env.now)
        self._counters.current_tick = tick

        self._admit_arrival(tick)
        self._advance_workers(tick)
        self._dispatch(tick)
        self._apply_scaling()
        self._emit_snapshot(tick)

    def _admit_arrival(self, tick: int) -> None:
        assert self._spec and self._generator and self._filter
        if self._rng.random() >= self._spec.arrival.admission_probability:
            return
        self._counters.total_arrivals += 1

        job = self._generator.generate(tick)
        if self._filter.is_rejected(job):
            self._counters.total_rejected += 1
            self._publish(EventType.JOB_REJECTED, job_id=job.job_id, payload=self._job_payload(job))
            return

        self._queue.push(job)
        self._counters.total_admitted += 1
        payload = self._job_payload(job)
        payload["queue_size"] = self._queue.size()
        self._publish(EventType.JOB_ADMITTED, job_id=job.job_id, payload=payload)

    def _advance_workers(self, tick: int) -> None:
        for worker in self._workers:
            job = worker.tick()
            if job is None:
                continue
            self._counters.total_completed += 1
            self._publish(
                EventType.JOB_COMPLETED,
                job_id=job.job_id,
                worker_id=worker.worker_id,
                payload={
                    "kind": job.kind.value,
                    "service_duration": job.service_duration,
                    "turnaround_ticks": tick - job.created_at,
                },
            )

    def _dispatch(self, tick: int) -> None:
        for worker in self._workers:
            if self._queue.is_empty():
                break
            if not worker.is_idle:
                continue
            job = self._queue.pop()
            worker.assign(job)
            self._counters.total_dispatched += 1
            self._publish(
                EventType.JOB_DISPATCHED,
                job_id=job.job_id,
                worker_id=worker.worker_id,
                payload={
                    "kind": job.kind.value,
                    "wait_ticks": tick - job.created_at,
                    "remaining_ticks": worker.remaining_ticks,
                },
            )

    def _apply_scaling(self) -> None:
        assert self._policy is not None
        decision = self._policy.evaluate(self._queue.size(), len(self._workers))
        self._counters.scale_cooldown_remaining = self._policy.cooldown_remaining
        if decision is ScaleDecision.GROW:
            worker = Worker(next(self._worker_ids))
            self._workers.append(worker)
            self._publish(
                EventType.WORKER_ADDED,
                worker_id=worker.worker_id,
                payload=self._scaling_payload(),
            )
        elif decision is ScaleDecision.SHRINK:
            self._shrink()

    def _scaling_payload(self, **extra: Any) -> dict[str, Any]:
        assert self._policy is not None
        return {
            "worker_count": len(self._workers),
            "queue_size": self._queue.size(),
            "cooldown_period": self._policy.cooldown_period,
            **extra,
        }

    def _shrink(self) -> None:
        assert self._spec is not None
        if len(self._workers) <= 1:
            self._publish(EventType.SCALE_DEFERRED, payload=self._scaling_payload(reason="min_pool_size"))
            return

        if self._spec.scaling.shrink_mode is ShrinkMode.LAST:
            index: int | None = len(self._workers) - 1
        else:
            index = next(
                (i for i in range(len(self._workers) - 1, -1, -1) if self._workers[i].is_idle),
                None,
            )
        if index is None:
            self._publish(EventType.SCALE_DEFERRED, payload=self._scaling_payload(reason="no_idle_worker"))
            return

        worker = self._workers.pop(index)
        dropped = worker.evict()
        if dropped is not None:
            self._counters.total_dropped += 1
            self._publish(
                EventType.JOB_DROPPED,
                job_id=dropped.job_id,
                worker_id=worker.worker_id,
                payload={"kind": dropped.kind.value, "reason": "worker_removed"},
            )
        self._publish(
            EventType.WORKER_REMOVED,
            worker_id=worker.worker_id,
            payload=self._scaling_payload(),
        )

    def _emit_snapshot(self, tick: int) -> None:
        snapshot = TickSnapshot(
            tick=tick,
            worker_count=len(self._workers),
            queue_size=self._queue.size(),
            total_completed=self._counters.total_completed,
            total_rejected=self._counters.total_rejected,
            total_admitted=self._counters.total_admitted,
            busy_workers=sum(1 for worker in self._workers if not worker.is_idle),
        )
        self._publish(EventType.TICK_SNAPSHOT, payload=snapshot.to_dict())
        for sink in list(self._sinks):
            self._write_to_sink(sink, sink.write_snapshot, snapshot)

    def _finish_if_complete(self) -> None:
        assert self._spec is not None
        if self._summary is not None or self._counters.current_tick < self._spec.sim.running_ticks:
            return
        summary = RunSummary(
            initial_worker_count=self._spec.sim.initial_workers,
            final_worker_count=len(self._workers),
            total_completed=self._counters.total_completed,
            total_rejected=self._counters.total_rejected,
            total_admitted=self._counters.total_admitted,
            total_prefilled=self._counters.total_prefilled,
            ticks=self._counters.current_tick,
        )
        self._summary = summary
        self._publish(EventType.RUN_SUMMARY, payload=summary.to_dict())
        for sink in list(self._sinks):
            self._write_to_sink(sink, sink.write_summary, summary)

    def _write_to_sink(self, sink: ISnapshotSink, write: Callable[[Any], None], record: Any) -> None:
        try:
            write(record)
        except SinkUnavailable as exc:
            self._counters.sink_failures += 1
            logger.warning(
                "sink %s unavailable at tick %d: %s",
                type(sink).__name__,
                self._counters.current_tick,
                exc,
            )

    def _close_sink(self, sink: ISnapshotSink) -> None:
        try:
            sink.close()
        except SinkUnavailable as exc:
            self._counters.sink_failures += 1
            logger.warning("failed to close sink %s: %s", type(sink).__name__, exc)

    def _reset_sink(self, sink: ISnapshotSink) -> None:
        try:
            sink.reset()
        except SinkUnavailable as exc:
            logger.warning("failed to reset sink %s: %s", type(sink).__name__, exc)
