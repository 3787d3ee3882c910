"""Metric comparison helpers for two simulation runs."""

from __future__ import annotations

from typing import Any


DEFAULT_SCALAR_KEYS: tuple[str, ...] = (
    "jobs_prefilled",
    "jobs_admitted",
    "jobs_rejected",
    "jobs_dispatched",
    "jobs_completed",
    "jobs_dropped",
    "rejection_ratio",
    "avg_wait_ticks",
    "avg_turnaround_ticks",
    "scale_up_count",
    "scale_down_count",
    "scale_deferred_count",
    "peak_workers",
    "avg_workers",
    "peak_queue_size",
    "worker_utilization",
    "final_worker_count",
    "final_queue_size",
    "event_count",
    "max_time",
)


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _diff_row(left_value: float, right_value: float) -> dict[str, float]:
    delta = right_value - left_value
    return {
        "left": left_value,
        "right": right_value,
        "delta": delta,
        "delta_ratio_pct": (delta / left_value * 100.0) if abs(left_value) > 1e-12 else 0.0,
    }


def build_compare_report(
    left_metrics: dict[str, Any],
    right_metrics: dict[str, Any],
    *,
    left_label: str = "left",
    right_label: str = "right",
    scalar_keys: tuple[str, ...] = DEFAULT_SCALAR_KEYS,
) -> dict[str, Any]:
    """Build a deterministic metric diff report for two runs."""

    scalar_rows = [
        {"metric": key, **_diff_row(_to_float(left_metrics.get(key)), _to_float(right_metrics.get(key)))}
        for key in scalar_keys
    ]

    left_kinds = left_metrics.get("completed_by_kind")
    right_kinds = right_metrics.get("completed_by_kind")
    left_map = left_kinds if isinstance(left_kinds, dict) else {}
    right_map = right_kinds if isinstance(right_kinds, dict) else {}
    kind_rows = [
        {"kind": str(kind), **_diff_row(_to_float(left_map.get(kind)), _to_float(right_map.get(kind)))}
        for kind in sorted(set(left_map) | set(right_map))
    ]

    return {
        "left_label": left_label,
        "right_label": right_label,
        "scalar_metrics": scalar_rows,
        "completed_by_kind": kind_rows,
    }


def compare_report_to_rows(report: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten compare report to CSV-friendly rows."""

    rows: list[dict[str, Any]] = []
    for item in report.get("scalar_metrics", []):
        if isinstance(item, dict):
            rows.append({"category": "scalar", **item})
    for item in report.get("completed_by_kind", []):
        if isinstance(item, dict):
            rows.append({"category": "completed_by_kind", "metric": item.get("kind", ""), **item})
    return rows
