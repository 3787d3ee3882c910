"""I/O exports."""

from dispatch_sim.errors import ConfigError

from .artifacts import read_json_object, write_events_csv, write_json, write_jsonl, write_rows_csv
from .experiment_runner import BatchRunSummary, BatchSpec, ExperimentRunner, expand_factors
from .loader import ConfigLoader, ValidationIssue, build_default_payload
from .schema import CONFIG_SCHEMA

__all__ = [
    "BatchRunSummary",
    "BatchSpec",
    "CONFIG_SCHEMA",
    "ConfigError",
    "ConfigLoader",
    "ExperimentRunner",
    "ValidationIssue",
    "build_default_payload",
    "expand_factors",
    "read_json_object",
    "write_events_csv",
    "write_json",
    "write_jsonl",
    "write_rows_csv",
]
