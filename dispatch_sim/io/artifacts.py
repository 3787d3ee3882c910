"""Run artifact writers shared by the CLI and the batch runner."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Iterable

from dispatch_sim.errors import ConfigError


EVENT_CSV_FIELDS = ("event_id", "seq", "correlation_id", "time", "type", "job_id", "worker_id", "payload")


def _target(path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    return target


def write_json(path: str | Path, payload: dict[str, Any]) -> Path:
    target = _target(path)
    target.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return target


def write_jsonl(path: str | Path, rows: Iterable[dict[str, Any]]) -> Path:
    target = _target(path)
    with target.open("w", encoding="utf-8") as handle:
        handle.writelines(json.dumps(row, ensure_ascii=False) + "\n" for row in rows)
    return target


def write_rows_csv(path: str | Path, rows: list[dict[str, Any]]) -> Path:
    """Write heterogeneous rows; columns are the union of keys in first-seen order."""
    columns = list(dict.fromkeys(key for row in rows for key in row))
    target = _target(path)
    with target.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=columns)
        writer.writeheader()
        writer.writerows(rows)
    return target


def write_events_csv(path: str | Path, events: list[dict[str, Any]]) -> Path:
    """Flatten serialized events, keeping the payload as an embedded JSON column."""
    rows = [
        {
            **{field: event.get(field) for field in EVENT_CSV_FIELDS},
            "payload": json.dumps(event.get("payload", {}), ensure_ascii=False),
        }
        for event in events
    ]
    target = _target(path)
    with target.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=EVENT_CSV_FIELDS)
        writer.writeheader()
        writer.writerows(rows)
    return target


def read_json_object(path: str | Path) -> dict[str, Any]:
    source = Path(path)
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read {source}: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"{source} must contain a JSON object")
    return payload
