"""Exception hierarchy shared by the simulation core, sinks and loaders."""

from __future__ import annotations


class SimulationError(Exception):
    """Base exception for dispatch simulation failures."""


class ConfigError(SimulationError):
    """Configuration loading/validation error."""


class InvariantViolation(SimulationError):
    """A core invariant was broken; indicates a logic bug and is never recovered."""


class WorkerBusyError(InvariantViolation):
    """Raised when a job is assigned to a worker that is already busy."""


class EmptyQueueError(InvariantViolation):
    """Raised when popping from an empty job queue."""


class SinkUnavailable(SimulationError):
    """An output sink could not be written; the simulation continues without it."""
