from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from dispatch_sim.cli.main import main


EXAMPLES = Path(__file__).resolve().parents[1] / "examples"


def test_cli_validate_ok() -> None:
    code = main(["validate", "-c", str(EXAMPLES / "default.yaml")])
    assert code == 0


def test_cli_run_outputs(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    events_out = tmp_path / "events.jsonl"
    metrics_out = tmp_path / "metrics.json"
    events_csv = tmp_path / "events.csv"
    audit_out = tmp_path / "audit.json"

    code = main(
        [
            "run",
            "-c",
            str(EXAMPLES / "default.yaml"),
            "--ticks",
            "120",
            "--events-out",
            str(events_out),
            "--events-csv-out",
            str(events_csv),
            "--metrics-out",
            str(metrics_out),
            "--audit-out",
            str(audit_out),
        ]
    )
    assert code == 0

    first_event = json.loads(events_out.read_text(encoding="utf-8").splitlines()[0])
    assert first_event["type"] == "JobPrefilled"
    metrics = json.loads(metrics_out.read_text(encoding="utf-8"))
    assert metrics["max_time"] == 120
    assert json.loads(audit_out.read_text(encoding="utf-8"))["status"] == "pass"

    with events_csv.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert rows[-1]["type"] == "RunSummary"
    assert json.loads(rows[-1]["payload"])["ticks"] == 120

    output = capsys.readouterr().out
    assert "[Tick 50] Workers:" in output
    assert "[Tick 100] Workers:" in output
    assert "Simulation complete" in output
    assert "[OK] simulation completed, ticks=120" in output


def test_cli_run_without_config_writes_state_log(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    log_file = tmp_path / "state.csv"
    code = main(
        [
            "run",
            "--workers",
            "2",
            "--ticks",
            "30",
            "--seed",
            "4",
            "--quiet",
            "--log-file",
            str(log_file),
            "--events-out",
            str(tmp_path / "events.jsonl"),
            "--metrics-out",
            str(tmp_path / "metrics.json"),
        ]
    )
    assert code == 0
    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Clock,Servers,QueueSize,Processed,Blocked"
    assert lines[30].startswith("30,")
    assert lines[31] == "Simulation complete"
    assert "Initial Servers: 2" in lines
    assert "[Tick" not in capsys.readouterr().out


def test_cli_run_step_and_until(tmp_path: Path) -> None:
    metrics_out = tmp_path / "metrics.json"
    code = main(
        [
            "run",
            "-c",
            str(EXAMPLES / "default.yaml"),
            "--step",
            "--until",
            "7",
            "--quiet",
            "--events-out",
            str(tmp_path / "events.jsonl"),
            "--metrics-out",
            str(metrics_out),
        ]
    )
    assert code == 0
    assert json.loads(metrics_out.read_text(encoding="utf-8"))["max_time"] == 7


def test_cli_run_interactive_prompts_until_valid(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    answers = iter(["0", "abc", "2", "-5", "40"])
    prompts: list[str] = []

    def _fake_input(prompt: str = "") -> str:
        prompts.append(prompt)
        return next(answers)

    monkeypatch.setattr("builtins.input", _fake_input)
    monkeypatch.chdir(tmp_path)

    code = main(["run", "--interactive", "--console-every", "10"])
    assert code == 0
    assert prompts == [
        "Enter initial number of workers: ",
        "Number of workers must be at least 1. Try again: ",
        "Number of workers must be at least 1. Try again: ",
        "Enter number of ticks to run: ",
        "Running ticks must be at least 1. Try again: ",
    ]
    metrics = json.loads((tmp_path / "artifacts" / "metrics.json").read_text(encoding="utf-8"))
    assert metrics["max_time"] == 40
    assert metrics["jobs_prefilled"] == 40
    assert "Initial Workers: 2" in capsys.readouterr().out


def test_cli_batch_run_outputs_summary(tmp_path: Path) -> None:
    base_config = tmp_path / "base.yaml"
    base_config.write_text(
        (EXAMPLES / "single_worker.yaml").read_text(encoding="utf-8"),
        encoding="utf-8",
    )
    batch_config = tmp_path / "batch.yaml"
    batch_config.write_text(
        """
version: "0.1"
base_config: "base.yaml"
output_dir: "out"
factors:
  scaling.shrink_mode: ["idle_only", "last"]
  sim.seed: [11, 22]
""".strip(),
        encoding="utf-8",
    )

    code = main(["batch-run", "-b", str(batch_config)])
    assert code == 0

    summary_json = tmp_path / "out" / "summary.json"
    summary_csv = tmp_path / "out" / "summary.csv"
    assert summary_json.exists()
    assert summary_csv.exists()

    payload = json.loads(summary_json.read_text(encoding="utf-8"))
    assert payload["total_runs"] == 4
    assert payload["succeeded_runs"] == 4
    assert payload["failed_runs"] == 0
    assert (tmp_path / "out" / "run_000" / "events.jsonl").exists()
    assert payload["runs"][0]["jobs_prefilled"] == 20


def test_cli_batch_run_strict_mode_returns_non_zero_on_failed_runs(tmp_path: Path) -> None:
    base_config = tmp_path / "base.yaml"
    base_config.write_text(
        (EXAMPLES / "single_worker.yaml").read_text(encoding="utf-8"),
        encoding="utf-8",
    )
    batch_config = tmp_path / "batch.yaml"
    batch_config.write_text(
        """
version: "0.1"
base_config: "base.yaml"
output_dir: "out"
until: 1
factors:
  scaling.policy: ["threshold", "unknown_policy"]
""".strip(),
        encoding="utf-8",
    )

    assert main(["batch-run", "-b", str(batch_config)]) == 0
    assert main(["batch-run", "-b", str(batch_config), "--strict-fail-on-error"]) == 2

    payload = json.loads((tmp_path / "out" / "summary.json").read_text(encoding="utf-8"))
    assert payload["failed_runs"] == 1
    failed = next(row for row in payload["runs"] if row["status"] == "error")
    assert "unknown scaling policy" in failed["error"]


def test_cli_compare_outputs(tmp_path: Path) -> None:
    left = tmp_path / "left.json"
    right = tmp_path / "right.json"
    left.write_text(json.dumps({"jobs_completed": 10, "completed_by_kind": {"batch": 4}}), encoding="utf-8")
    right.write_text(json.dumps({"jobs_completed": 15, "completed_by_kind": {"batch": 6}}), encoding="utf-8")
    out_json = tmp_path / "compare.json"
    out_csv = tmp_path / "compare.csv"

    code = main(
        [
            "compare",
            "--left-metrics",
            str(left),
            "--right-metrics",
            str(right),
            "--left-label",
            "two-workers",
            "--out-json",
            str(out_json),
            "--out-csv",
            str(out_csv),
        ]
    )
    assert code == 0
    report = json.loads(out_json.read_text(encoding="utf-8"))
    assert report["left_label"] == "two-workers"
    completed = next(row for row in report["scalar_metrics"] if row["metric"] == "jobs_completed")
    assert completed["delta"] == 5.0
    assert "completed_by_kind" in out_csv.read_text(encoding="utf-8")


def test_cli_run_interactive_keeps_valid_config_counts(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _no_input(prompt: str = "") -> str:
        raise AssertionError(f"unexpected prompt: {prompt!r}")

    monkeypatch.setattr("builtins.input", _no_input)
    metrics_out = tmp_path / "metrics.json"
    code = main(
        [
            "run",
            "--interactive",
            "-c",
            str(EXAMPLES / "single_worker.yaml"),
            "--quiet",
            "--events-out",
            str(tmp_path / "events.jsonl"),
            "--metrics-out",
            str(metrics_out),
        ]
    )
    assert code == 0
    metrics = json.loads(metrics_out.read_text(encoding="utf-8"))
    assert metrics["jobs_prefilled"] == 20


def test_cli_run_interactive_prompts_only_for_invalid_config_count(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    config = tmp_path / "zero_workers.yaml"
    config.write_text(
        'version: "0.1"\nsim:\n  initial_workers: 0\n  running_ticks: 6\n  seed: 3\n',
        encoding="utf-8",
    )
    prompts: list[str] = []

    def _fake_input(prompt: str = "") -> str:
        prompts.append(prompt)
        return "2"

    monkeypatch.setattr("builtins.input", _fake_input)
    metrics_out = tmp_path / "metrics.json"
    code = main(
        [
            "run",
            "--interactive",
            "-c",
            str(config),
            "--quiet",
            "--events-out",
            str(tmp_path / "events.jsonl"),
            "--metrics-out",
            str(metrics_out),
        ]
    )
    assert code == 0
    assert prompts == ["Enter initial number of workers: "]
    metrics = json.loads(metrics_out.read_text(encoding="utf-8"))
    assert metrics["jobs_prefilled"] == 40
    assert metrics["max_time"] == 6
