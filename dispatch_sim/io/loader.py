"""Config file parsing, flat-layout migration and two-stage validation.

A payload goes through three steps before it becomes a ``ModelSpec``:

1. ``normalize`` resolves the config version and lifts the old flat layout
   (``initial_workers``/``running_ticks``/``seed`` at the root) into ``sim``.
2. ``CONFIG_SCHEMA`` checks structure and primitive bounds.
3. pydantic checks cross-field rules such as ordered duration ranges.

Every failure surfaces as ``ConfigError``.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from pydantic import ValidationError

from dispatch_sim.errors import ConfigError
from dispatch_sim.model import ModelSpec

from .schema import CONFIG_SCHEMA


LEGACY_FLAT_KEYS = ("initial_workers", "running_ticks")
_LEGACY_OPTIONAL_KEYS = ("seed",)
_YAML_SUFFIXES = frozenset({".yaml", ".yml"})
_MAX_REPORTED_ISSUES = 8


@dataclass(slots=True)
class ValidationIssue:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.message}"


def build_default_payload(initial_workers: int, running_ticks: int, *, seed: int | None = None) -> dict[str, Any]:
    """Create a minimal config payload; every other option takes its default."""
    sim: dict[str, Any] = {"initial_workers": initial_workers, "running_ticks": running_ticks}
    if seed is not None:
        sim["seed"] = seed
    return {"version": ConfigLoader.SUPPORTED_VERSION, "sim": sim}


def _parse_text(path: Path, text: str) -> Any:
    if path.suffix.lower() in _YAML_SUFFIXES:
        return yaml.safe_load(text)
    return json.loads(text)


def _dump_text(path: Path, payload: dict[str, Any]) -> str:
    if path.suffix.lower() in _YAML_SUFFIXES:
        return yaml.safe_dump(payload, sort_keys=False)
    return json.dumps(payload, indent=2, ensure_ascii=False)


class ConfigLoader:
    """Turn YAML/JSON config files or dicts into validated ``ModelSpec`` objects."""

    SUPPORTED_VERSION = "0.1"

    def __init__(self) -> None:
        self._validator = jsonschema.Draft202012Validator(CONFIG_SCHEMA)

    def load(self, path: str) -> ModelSpec:
        return self.load_data(self.read(path))

    def load_data(self, payload: dict[str, Any]) -> ModelSpec:
        normalized = self.normalize(payload)
        issues = self.schema_issues(normalized)
        if issues:
            shown = " | ".join(str(issue) for issue in issues[:_MAX_REPORTED_ISSUES])
            raise ConfigError(f"schema validation failed: {shown}")
        try:
            return ModelSpec.model_validate(normalized)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

    def save(self, spec: ModelSpec, path: str) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(_dump_text(target, spec.model_dump(mode="json", exclude_none=True)), encoding="utf-8")

    def validate(self, spec_or_path: ModelSpec | str) -> list[ValidationIssue]:
        """Return every problem found instead of raising on the first."""
        if isinstance(spec_or_path, ModelSpec):
            return []
        try:
            normalized = self.normalize(self.read(spec_or_path))
        except ConfigError as exc:
            return [ValidationIssue(path=spec_or_path, message=str(exc))]
        issues = self.schema_issues(normalized)
        if issues:
            return issues
        try:
            ModelSpec.model_validate(normalized)
        except ValidationError as exc:
            return [
                ValidationIssue(path=".".join(str(part) for part in error["loc"]), message=error["msg"])
                for error in exc.errors()
            ]
        return []

    @staticmethod
    def read(path: str) -> dict[str, Any]:
        source = Path(path)
        if not source.exists():
            raise ConfigError(f"config file not found: {path}")
        try:
            data = _parse_text(source, source.read_text(encoding="utf-8"))
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigError(f"invalid config syntax: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"config root must be object: {path}")
        return data

    def normalize(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``payload`` in the current versioned layout."""
        if "version" not in payload and any(key in payload for key in LEGACY_FLAT_KEYS):
            return self._migrate_flat(payload)

        version = str(payload.get("version", self.SUPPORTED_VERSION))
        if version != self.SUPPORTED_VERSION:
            raise ConfigError(f"unsupported config version '{version}'")
        return {**payload, "version": version}

    def schema_issues(self, payload: dict[str, Any]) -> list[ValidationIssue]:
        errors = sorted(self._validator.iter_errors(payload), key=lambda err: [str(part) for part in err.path])
        return [ValidationIssue(path=".".join(str(part) for part in err.path), message=err.message) for err in errors]

    def _migrate_flat(self, payload: dict[str, Any]) -> dict[str, Any]:
        unexpected = sorted(set(payload) - set(LEGACY_FLAT_KEYS) - set(_LEGACY_OPTIONAL_KEYS))
        if unexpected:
            raise ConfigError(f"invalid config structure: unexpected flat key '{unexpected[0]}'")
        return {"version": self.SUPPORTED_VERSION, "sim": dict(payload)}
