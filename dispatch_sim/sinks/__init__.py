"""Output sink exports."""

from .base import ISnapshotSink
from .console import ConsoleSink
from .state_log import STATE_LOG_HEADER, StateLogSink

__all__ = ["ConsoleSink", "ISnapshotSink", "STATE_LOG_HEADER", "StateLogSink"]
