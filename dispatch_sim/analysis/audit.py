"""Post-simulation audit checks over the serialized event stream."""

from __future__ import annotations

from collections import Counter
from typing import Any


SCALE_EVENT_TYPES = frozenset({"WorkerAdded", "WorkerRemoved", "ScaleDeferred"})
SNAPSHOT_TOTAL_KEYS = ("total_completed", "total_rejected", "total_admitted")


def _payload(event: dict[str, Any]) -> dict[str, Any]:
    payload = event.get("payload", {})
    return payload if isinstance(payload, dict) else {}


def _check_snapshots(snapshots: list[dict[str, Any]], issues: list[dict[str, Any]], checks: dict[str, Any]) -> None:
    below_floor = [
        {"event_id": event.get("event_id"), "tick": event.get("time"), "worker_count": _payload(event).get("worker_count")}
        for event in snapshots
        if int(_payload(event).get("worker_count", 0)) < 1
    ]
    if below_floor:
        issues.append(
            {
                "rule": "worker_floor",
                "severity": "error",
                "message": "worker pool dropped below one worker",
                "samples": below_floor[:20],
            }
        )
    checks["worker_floor"] = {"passed": not below_floor}

    ticks = [int(event.get("time", 0)) for event in snapshots]
    gaps = [
        {"expected": expected, "actual": actual}
        for expected, actual in zip(range(1, len(ticks) + 1), ticks)
        if expected != actual
    ]
    if gaps:
        issues.append(
            {
                "rule": "snapshot_per_tick",
                "severity": "error",
                "message": "TickSnapshot events must appear exactly once per tick starting at tick 1",
                "samples": gaps[:20],
            }
        )
    checks["snapshot_per_tick"] = {"passed": not gaps, "ticks": len(ticks)}

    regressions: list[dict[str, Any]] = []
    previous: dict[str, int] = {}
    for event in snapshots:
        payload = _payload(event)
        for key in SNAPSHOT_TOTAL_KEYS:
            if key not in payload:
                continue
            value = int(payload[key])
            if value < previous.get(key, 0):
                regressions.append({"tick": event.get("time"), "counter": key, "value": value, "previous": previous[key]})
            previous[key] = value
    if regressions:
        issues.append(
            {
                "rule": "counters_monotonic",
                "severity": "error",
                "message": "snapshot counters decreased between ticks",
                "samples": regressions[:20],
            }
        )
    checks["counters_monotonic"] = {"passed": not regressions}


def _check_scaling(
    scale_events: list[dict[str, Any]],
    cooldown_period: int | None,
    issues: list[dict[str, Any]],
    checks: dict[str, Any],
) -> None:
    per_tick = Counter(int(event.get("time", 0)) for event in scale_events)
    crowded = sorted(tick for tick, count in per_tick.items() if count > 1)
    if crowded:
        issues.append(
            {
                "rule": "single_scale_per_tick",
                "severity": "error",
                "message": "more than one scaling decision applied in a single tick",
                "ticks": crowded[:20],
            }
        )
    checks["single_scale_per_tick"] = {"passed": not crowded}

    violations: list[dict[str, Any]] = []
    previous_tick: int | None = None
    for event in scale_events:
        tick = int(event.get("time", 0))
        period = cooldown_period
        if period is None:
            raw = _payload(event).get("cooldown_period")
            period = int(raw) if isinstance(raw, int) else 0
        if previous_tick is not None and tick != previous_tick and tick - previous_tick <= period:
            violations.append({"previous_tick": previous_tick, "tick": tick, "cooldown_period": period})
        previous_tick = tick
    if violations:
        issues.append(
            {
                "rule": "cooldown_discipline",
                "severity": "error",
                "message": "scaling decision issued inside the cooldown window of the previous one",
                "samples": violations[:20],
            }
        )
    checks["cooldown_discipline"] = {"passed": not violations, "decisions": len(scale_events)}


def _check_job_flow(events: list[dict[str, Any]], issues: list[dict[str, Any]], checks: dict[str, Any]) -> None:
    dispatched: Counter[str] = Counter()
    completed: Counter[str] = Counter()
    dropped: set[str] = set()
    entered = 0
    for event in events:
        event_type = event.get("type")
        job_id = event.get("job_id")
        if event_type in {"JobPrefilled", "JobAdmitted"}:
            entered += 1
        elif event_type == "JobDispatched" and job_id:
            dispatched[job_id] += 1
        elif event_type == "JobCompleted" and job_id:
            completed[job_id] += 1
        elif event_type == "JobDropped" and job_id:
            dropped.add(job_id)

    duplicate_dispatch = sorted(job_id for job_id, count in dispatched.items() if count > 1)
    duplicate_complete = sorted(job_id for job_id, count in completed.items() if count > 1)
    orphan_complete = sorted(job_id for job_id in completed if job_id not in dispatched)
    complete_and_dropped = sorted(job_id for job_id in completed if job_id in dropped)
    flow_problems = duplicate_dispatch or duplicate_complete or orphan_complete or complete_and_dropped
    if flow_problems:
        issues.append(
            {
                "rule": "dispatch_once",
                "severity": "error",
                "message": "every job must be dispatched at most once and completed at most once after dispatch",
                "duplicate_dispatch": duplicate_dispatch[:20],
                "duplicate_complete": duplicate_complete[:20],
                "completed_without_dispatch": orphan_complete[:20],
                "completed_and_dropped": complete_and_dropped[:20],
            }
        )
    checks["dispatch_once"] = {"passed": not flow_problems}

    total_completed = sum(completed.values())
    total_dispatched = sum(dispatched.values())
    conserved = total_dispatched <= entered and total_completed <= total_dispatched
    if not conserved:
        issues.append(
            {
                "rule": "completion_conservation",
                "severity": "error",
                "message": "completed <= dispatched <= admitted + prefilled must hold",
                "entered": entered,
                "dispatched": total_dispatched,
                "completed": total_completed,
            }
        )
    checks["completion_conservation"] = {
        "passed": conserved,
        "entered": entered,
        "dispatched": total_dispatched,
        "completed": total_completed,
    }


def build_audit_report(
    events: list[dict[str, Any]],
    *,
    cooldown_period: int | None = None,
) -> dict[str, Any]:
    """Check pool, scaling and job-flow invariants on a run's events.

    ``cooldown_period`` overrides the value carried in scaling event payloads.
    """
    issues: list[dict[str, Any]] = []
    checks: dict[str, Any] = {}

    ordered = sorted(events, key=lambda event: int(event.get("seq", 0)))
    snapshots = [event for event in ordered if event.get("type") == "TickSnapshot"]
    scale_events = [event for event in ordered if event.get("type") in SCALE_EVENT_TYPES]

    _check_snapshots(snapshots, issues, checks)
    _check_scaling(scale_events, cooldown_period, issues, checks)
    _check_job_flow(ordered, issues, checks)

    return {
        "status": "pass" if not issues else "fail",
        "issue_count": len(issues),
        "issues": issues,
        "checks": checks,
    }
