"""Parameter-matrix experiments over a base simulation config."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from itertools import product
import logging
from pathlib import Path
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator

from dispatch_sim.core import DispatchEngine
from dispatch_sim.errors import ConfigError, SimulationError

from .artifacts import write_json, write_jsonl, write_rows_csv
from .loader import ConfigLoader


logger = logging.getLogger(__name__)


class BatchSpec(BaseModel):
    """Batch file layout: a base config plus dotted-path factor lists."""

    model_config = ConfigDict(extra="forbid")

    version: str = "0.1"
    base_config: str = Field(min_length=1)
    factors: dict[str, list[Any]]
    output_dir: Optional[str] = None
    until: Optional[StrictInt] = Field(default=None, ge=0)

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, value: Any) -> str:
        return str(value)

    @field_validator("factors")
    @classmethod
    def validate_factors(cls, value: dict[str, list[Any]]) -> dict[str, list[Any]]:
        if not value:
            raise ValueError("factors must not be empty")
        for path, choices in value.items():
            if not path:
                raise ValueError("factor path must be non-empty")
            if not choices:
                raise ValueError(f"factor '{path}' must provide at least one value")
        return value


@dataclass(slots=True)
class BatchRunSummary:
    summary_csv: Path
    summary_json: Path
    total_runs: int
    succeeded_runs: int
    failed_runs: int


def expand_factors(factors: dict[str, list[Any]]) -> Iterator[dict[str, Any]]:
    """Yield one ``{path: value}`` assignment per cell of the factor matrix, paths sorted."""
    paths = sorted(factors)
    for values in product(*(factors[path] for path in paths)):
        yield dict(zip(paths, values))


def set_dotted(payload: dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    node: Any = payload
    for part in parents:
        node = node.setdefault(part, {}) if isinstance(node, dict) else None
    if not isinstance(node, dict):
        raise ConfigError(f"cannot apply factor '{path}': '{'.'.join(parents)}' is not a mapping")
    node[leaf] = value


class ExperimentRunner:
    """Run every factor combination and collect one summary row per run.

    A run that fails with a configuration or simulation error is recorded with
    ``status="error"`` and the batch moves on to the next combination.
    """

    SUPPORTED_VERSION = "0.1"

    def __init__(self, loader: ConfigLoader | None = None) -> None:
        self._loader = loader or ConfigLoader()

    def run_batch(
        self,
        batch_config_path: str,
        *,
        output_dir: str | None = None,
        summary_csv: str | None = None,
        summary_json: str | None = None,
    ) -> BatchRunSummary:
        batch_path = Path(batch_config_path)
        batch = self._load_batch(batch_path)
        root = batch_path.parent

        base_config_path = self._resolve(root, batch.base_config)
        base_payload = self._loader.normalize(self._loader.read(str(base_config_path)))

        out_raw = output_dir or batch.output_dir
        out_dir = self._resolve(root, out_raw) if out_raw else (root / "artifacts" / "batch").resolve()
        out_dir.mkdir(parents=True, exist_ok=True)

        rows: list[dict[str, Any]] = []
        for index, assignment in enumerate(expand_factors(batch.factors)):
            payload = copy.deepcopy(base_payload)
            row: dict[str, Any] = {"run_id": f"run_{index:03d}", **assignment}
            try:
                for path, value in assignment.items():
                    set_dotted(payload, path, value)
            except ConfigError as exc:
                rows.append(self._failed(row, exc))
                continue
            rows.append(self._execute(out_dir / row["run_id"], payload, batch.until, row))

        succeeded = sum(1 for row in rows if row["status"] == "ok")
        csv_path = self._resolve(root, summary_csv) if summary_csv else out_dir / "summary.csv"
        json_path = self._resolve(root, summary_json) if summary_json else out_dir / "summary.json"
        write_rows_csv(csv_path, rows)
        write_json(
            json_path,
            {
                "version": self.SUPPORTED_VERSION,
                "base_config": str(base_config_path),
                "factors": batch.factors,
                "total_runs": len(rows),
                "succeeded_runs": succeeded,
                "failed_runs": len(rows) - succeeded,
                "runs": rows,
            },
        )
        logger.info("batch %s finished: %d/%d runs succeeded", batch_path, succeeded, len(rows))
        return BatchRunSummary(
            summary_csv=csv_path,
            summary_json=json_path,
            total_runs=len(rows),
            succeeded_runs=succeeded,
            failed_runs=len(rows) - succeeded,
        )

    def _load_batch(self, path: Path) -> BatchSpec:
        raw = self._loader.read(str(path))
        try:
            batch = BatchSpec.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError(f"invalid batch config {path}: {exc}") from exc
        if batch.version != self.SUPPORTED_VERSION:
            raise ConfigError(f"unsupported batch version '{batch.version}'")
        return batch

    def _execute(self, run_dir: Path, payload: dict[str, Any], until: int | None, row: dict[str, Any]) -> dict[str, Any]:
        try:
            spec = self._loader.load_data(payload)
            engine = DispatchEngine()
            engine.build(spec)
            engine.run(until=until)
        except (SimulationError, ValueError) as exc:
            return self._failed(row, exc)

        metrics = engine.metric_report()
        events_path = write_jsonl(run_dir / "events.jsonl", (event.model_dump(mode="json") for event in engine.events))
        metrics_path = write_json(run_dir / "metrics.json", metrics)
        row.update(status="ok", events_path=str(events_path), metrics_path=str(metrics_path))
        row.update({key: value for key, value in metrics.items() if not isinstance(value, dict)})
        return row

    @staticmethod
    def _failed(row: dict[str, Any], exc: Exception) -> dict[str, Any]:
        logger.warning("batch %s failed: %s", row["run_id"], exc)
        row.update(status="error", error=str(exc))
        return row

    @staticmethod
    def _resolve(base_dir: Path, raw_path: str) -> Path:
        path = Path(raw_path)
        return path if path.is_absolute() else (base_dir / path).resolve()
