"""Simulation core exports."""

from .engine import DispatchEngine
from .interfaces import ISimEngine
from .job_queue import JobQueue
from .worker import Worker

__all__ = ["DispatchEngine", "ISimEngine", "JobQueue", "Worker"]
