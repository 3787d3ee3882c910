"""JSON schema for configuration structure validation."""

from __future__ import annotations

CONFIG_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Dispatch Simulation Config",
    "type": "object",
    "required": ["version", "sim"],
    "properties": {
        "version": {"type": "string"},
        "sim": {
            "type": "object",
            "required": ["initial_workers", "running_ticks"],
            "properties": {
                "initial_workers": {"type": "integer", "minimum": 1},
                "running_ticks": {"type": "integer", "minimum": 1},
                "seed": {"type": "integer"},
                "event_id_mode": {
                    "type": "string",
                    "enum": ["deterministic", "random", "seeded_random"],
                },
            },
            "additionalProperties": False,
        },
        "arrival": {
            "type": "object",
            "properties": {
                "generator": {"type": "string", "minLength": 1},
                "admission_probability": {"type": "number", "minimum": 0, "maximum": 1},
                "initial_queue_multiplier": {"type": "integer", "minimum": 0},
            },
            "additionalProperties": False,
        },
        "jobs": {
            "type": "object",
            "properties": {
                "streaming_duration": {"$ref": "#/$defs/DurationRange"},
                "batch_duration": {"$ref": "#/$defs/DurationRange"},
            },
            "additionalProperties": False,
        },
        "admission": {
            "type": "object",
            "properties": {
                "filter": {"type": "string", "minLength": 1},
                "blocked_origin_range": {"$ref": "#/$defs/OctetRange"},
            },
            "additionalProperties": False,
        },
        "scaling": {
            "type": "object",
            "properties": {
                "policy": {"type": "string", "minLength": 1},
                "scale_up_ratio": {"type": "number", "exclusiveMinimum": 0},
                "scale_down_ratio": {"type": "number", "minimum": 0},
                "min_workers_for_shrink": {"type": "integer", "minimum": 2},
                "cooldown_period": {"type": "integer", "minimum": 0},
                "shrink_mode": {"type": "string", "enum": ["idle_only", "last"]},
            },
            "additionalProperties": False,
        },
    },
    "$defs": {
        "DurationRange": {
            "type": "array",
            "minItems": 2,
            "maxItems": 2,
            "items": {"type": "integer", "minimum": 1},
        },
        "OctetRange": {
            "type": "array",
            "minItems": 2,
            "maxItems": 2,
            "items": {"type": "integer", "minimum": 0, "maximum": 255},
        },
    },
    "additionalProperties": False,
}
