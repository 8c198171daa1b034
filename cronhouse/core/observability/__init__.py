"""Observability: in-memory scheduler metrics."""
from cronhouse.core.observability.metrics import SchedulerMetrics

__all__ = [
    "SchedulerMetrics",
]
