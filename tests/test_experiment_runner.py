from __future__ import annotations

import json
from pathlib import Path

import pytest

from dispatch_sim.io import ConfigError, ExperimentRunner, expand_factors
from dispatch_sim.io.experiment_runner import set_dotted


EXAMPLES = Path(__file__).resolve().parents[1] / "examples"


def _write_batch(tmp_path: Path, body: str) -> Path:
    (tmp_path / "base.yaml").write_text(
        (EXAMPLES / "single_worker.yaml").read_text(encoding="utf-8"),
        encoding="utf-8",
    )
    batch = tmp_path / "batch.yaml"
    batch.write_text(body.strip(), encoding="utf-8")
    return batch


def test_expand_factors_is_sorted_cartesian_product() -> None:
    cells = list(expand_factors({"sim.seed": [1, 2], "arrival.admission_probability": [0.1]}))
    assert cells == [
        {"arrival.admission_probability": 0.1, "sim.seed": 1},
        {"arrival.admission_probability": 0.1, "sim.seed": 2},
    ]


def test_set_dotted_creates_missing_sections() -> None:
    payload: dict = {"sim": {"seed": 1}}
    set_dotted(payload, "scaling.cooldown_period", 5)
    set_dotted(payload, "sim.seed", 9)
    assert payload == {"sim": {"seed": 9}, "scaling": {"cooldown_period": 5}}

    with pytest.raises(ConfigError, match="not a mapping"):
        set_dotted({"sim": 3}, "sim.seed", 1)


def test_run_batch_writes_per_run_artifacts(tmp_path: Path) -> None:
    batch = _write_batch(
        tmp_path,
        """
version: 0.1
base_config: base.yaml
until: 1
factors:
  sim.initial_workers: [1, 3]
""",
    )
    summary = ExperimentRunner().run_batch(str(batch), output_dir=str(tmp_path / "runs"))

    assert summary.total_runs == 2
    assert summary.failed_runs == 0
    assert summary.summary_csv == tmp_path / "runs" / "summary.csv"
    payload = json.loads(summary.summary_json.read_text(encoding="utf-8"))
    assert [row["jobs_prefilled"] for row in payload["runs"]] == [20, 60]
    assert [row["sim.initial_workers"] for row in payload["runs"]] == [1, 3]
    metrics = json.loads((tmp_path / "runs" / "run_001" / "metrics.json").read_text(encoding="utf-8"))
    assert metrics["final_worker_count"] == 3


def test_run_batch_records_bad_factor_path_as_failed_run(tmp_path: Path) -> None:
    batch = _write_batch(
        tmp_path,
        """
version: "0.1"
base_config: base.yaml
factors:
  sim.seed.value: [1]
""",
    )
    summary = ExperimentRunner().run_batch(str(batch))
    assert summary.failed_runs == 1
    row = json.loads(summary.summary_json.read_text(encoding="utf-8"))["runs"][0]
    assert row["status"] == "error"
    assert "not a mapping" in row["error"]


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ('version: "0.1"\nfactors: {sim.seed: [1]}', "base_config"),
        ('version: "0.1"\nbase_config: base.yaml\nfactors: {}', "factors must not be empty"),
        ('version: "0.1"\nbase_config: base.yaml\nfactors: {sim.seed: []}', "at least one value"),
        ('version: "0.1"\nbase_config: base.yaml\nuntil: soon\nfactors: {sim.seed: [1]}', "until"),
        ('version: "2"\nbase_config: base.yaml\nfactors: {sim.seed: [1]}', "unsupported batch version"),
        ('version: "0.1"\nbase_config: missing.yaml\nfactors: {sim.seed: [1]}', "not found"),
    ],
)
def test_run_batch_rejects_invalid_batch_files(tmp_path: Path, body: str, message: str) -> None:
    batch = _write_batch(tmp_path, body)
    with pytest.raises(ConfigError, match=message):
        ExperimentRunner().run_batch(str(batch))


def test_run_batch_applies_factors_to_flat_base_config(tmp_path: Path) -> None:
    (tmp_path / "flat.yaml").write_text(
        (EXAMPLES / "legacy_flat.yaml").read_text(encoding="utf-8"),
        encoding="utf-8",
    )
    batch = tmp_path / "batch.yaml"
    batch.write_text(
        'version: "0.1"\nbase_config: flat.yaml\nfactors:\n  sim.running_ticks: [3, 5]\n',
        encoding="utf-8",
    )
    summary = ExperimentRunner().run_batch(str(batch), output_dir=str(tmp_path / "runs"))

    assert summary.failed_runs == 0
    runs = json.loads(summary.summary_json.read_text(encoding="utf-8"))["runs"]
    assert [row["status"] for row in runs] == ["ok", "ok"]
    assert [row["max_time"] for row in runs] == [3, 5]
    assert [row["jobs_prefilled"] for row in runs] == [40, 40]
