"""
Error kinds for cron parsing, evaluation and dispatch.

Parse and evaluation errors are per-job: the dispatcher catches them at the job
boundary and records them in the tick report.
"""
from typing import Optional


class CronError(Exception):
    """Base class for all scheduler errors."""
    pass


class CronParseError(CronError, ValueError):
    """Raised when a cron expression does not follow the 5-field grammar."""
    pass


class CronEvaluationError(CronError):
    """Raised when no matching minute exists within the search horizon."""
    pass


class JobScheduleError(CronError):
    """A parse or evaluation failure tagged with the job it belongs to."""

    def __init__(self, job_name: str, reason: str):
        self.job_name = job_name
        self.reason = reason
        super().__init__(f"job {job_name!r}: {reason}")


class SubmissionError(CronError):
    """The task-execution service rejected the request or timed out."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason)


class ConfigError(CronError):
    """The jobs config file could not be read or decoded."""
    pass


class TickInProgressError(CronError):
    """Raised in single-flight mode when another tick is still running."""
    pass
