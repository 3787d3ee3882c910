"""Discrete-time simulation of an auto-scaling request dispatcher."""

__version__ = "0.1.0"
