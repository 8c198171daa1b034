"""
Cron expression evaluation and job dispatch.

Jobs come from a JSON config file re-read on every tick; due jobs are submitted
to a task-execution service when one is configured.
"""
from cronhouse.core.cron.dispatcher import DispatchConfig, Dispatcher
from cronhouse.core.cron.errors import (
    ConfigError,
    CronError,
    CronEvaluationError,
    CronParseError,
    JobScheduleError,
    SubmissionError,
    TickInProgressError,
)
from cronhouse.core.cron.evaluator import next_fire_time
from cronhouse.core.cron.expression import RecurrenceDescriptor, parse_expression
from cronhouse.core.cron.models import (
    ConfigFile,
    CronJob,
    ExecutionRequest,
    JobOutcome,
    TickReport,
)
from cronhouse.core.cron.naming import IdentifierPolicy, execution_identifier
from cronhouse.core.cron.service import CronService

__all__ = [
    "ConfigError",
    "ConfigFile",
    "CronError",
    "CronEvaluationError",
    "CronJob",
    "CronParseError",
    "CronService",
    "DispatchConfig",
    "Dispatcher",
    "ExecutionRequest",
    "IdentifierPolicy",
    "JobOutcome",
    "JobScheduleError",
    "RecurrenceDescriptor",
    "SubmissionError",
    "TickInProgressError",
    "TickReport",
    "execution_identifier",
    "next_fire_time",
    "parse_expression",
]
