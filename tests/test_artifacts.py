from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from dispatch_sim.io import ConfigError, read_json_object, write_events_csv, write_jsonl, write_rows_csv


def test_write_rows_csv_uses_union_of_columns(tmp_path: Path) -> None:
    path = write_rows_csv(tmp_path / "nested" / "rows.csv", [{"a": 1}, {"b": 2, "a": 3}])
    with path.open(encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        assert reader.fieldnames == ["a", "b"]
        assert list(reader) == [{"a": "1", "b": ""}, {"a": "3", "b": "2"}]


def test_write_events_csv_embeds_payload_json(tmp_path: Path) -> None:
    event = {
        "event_id": "evt-00000000",
        "seq": 0,
        "correlation_id": "engine",
        "time": 3,
        "type": "WorkerAdded",
        "job_id": None,
        "worker_id": 2,
        "payload": {"worker_count": 2},
    }
    path = write_events_csv(tmp_path / "events.csv", [event])
    with path.open(encoding="utf-8", newline="") as handle:
        row = next(csv.DictReader(handle))
    assert row["type"] == "WorkerAdded"
    assert json.loads(row["payload"]) == {"worker_count": 2}


def test_write_jsonl_one_object_per_line(tmp_path: Path) -> None:
    path = write_jsonl(tmp_path / "out.jsonl", iter([{"n": 1}, {"n": 2}]))
    assert [json.loads(line)["n"] for line in path.read_text(encoding="utf-8").splitlines()] == [1, 2]


def test_read_json_object_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="cannot read"):
        read_json_object(tmp_path / "absent.json")

    garbled = tmp_path / "garbled.json"
    garbled.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid JSON"):
        read_json_object(garbled)

    listing = tmp_path / "list.json"
    listing.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigError, match="JSON object"):
        read_json_object(listing)
