"""
Simple in-memory metrics for the scheduler: ticks, per-job outcomes, submissions.
"""
import threading
from typing import Dict, Optional


class SchedulerMetrics:
    """In-memory counters for ticks and job outcomes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ticks_total = 0
        self._jobs_scheduled = 0
        self._jobs_failed = 0
        self._submissions_total = 0
        self._failures_by_job: Dict[str, int] = {}
        self._last_tick: Optional[str] = None

    def record_tick(self, report) -> None:
        with self._lock:
            self._ticks_total += 1
            self._last_tick = report.now.isoformat()
            for outcome in report.outcomes:
                if outcome.status == "failed":
                    self._jobs_failed += 1
                    self._failures_by_job[outcome.job] = self._failures_by_job.get(outcome.job, 0) + 1
                else:
                    self._jobs_scheduled += 1
                if outcome.submitted:
                    self._submissions_total += 1

    def get_stats(self) -> Dict[str, object]:
        with self._lock:
            return {
                "ticks_total": self._ticks_total,
                "jobs_scheduled": self._jobs_scheduled,
                "jobs_failed": self._jobs_failed,
                "submissions_total": self._submissions_total,
                "failures_by_job": dict(self._failures_by_job),
                "last_tick": self._last_tick,
            }

    def get_failure_rate(self) -> Optional[float]:
        with self._lock:
            total = self._jobs_scheduled + self._jobs_failed
            if total == 0:
                return None
            return self._jobs_failed / total
