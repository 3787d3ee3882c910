"""Job generator exports."""

from .base import IJobGenerator
from .builtins import UniformJobGenerator, random_address
from .registry import create_job_generator, register_job_generator

__all__ = [
    "IJobGenerator",
    "UniformJobGenerator",
    "create_job_generator",
    "random_address",
    "register_job_generator",
]
