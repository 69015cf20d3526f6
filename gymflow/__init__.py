"""Gym access-control and session quota engine."""

__version__ = "1.0.0"
