"""
Tick-driven CPU scheduling simulator.

A logical clock drives a controller that asks a pluggable scheduler (FIFO,
priority, shortest remaining time) which process runs on every tick and
records the resulting timeline for Gantt charts and metrics.
"""

__all__ = [
    "algorithms",
    "cli",
    "clock",
    "controller",
    "gantt",
    "metrics",
    "models",
    "timeline",
    "workload_io",
]
