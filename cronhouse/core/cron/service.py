"""
Cron business logic: load the job set, run ticks, describe the schedule.

This is the only place that reads the clock; everything below it takes an
explicit `now`.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from cronhouse.core.cron.config_file import load_config_file
from cronhouse.core.cron.dispatcher import Dispatcher
from cronhouse.core.cron.errors import JobScheduleError
from cronhouse.core.cron.models import ConfigFile, CronJob, TickReport, job_to_dict

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CronService:
    """Service for reading the schedule and running ticks."""

    def __init__(
        self,
        config_path: str,
        dispatcher: Dispatcher,
        tz=timezone.utc,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        config_path: jobs config file, re-read on every call.
        dispatcher: dispatcher used for ticks.
        tz: timezone cron expressions are evaluated in.
        clock: returns the current instant (injectable for tests).
        """
        self.config_path = config_path
        self.dispatcher = dispatcher
        self.tz = tz
        self._clock = clock

    def now(self) -> datetime:
        return self._clock().astimezone(self.tz)

    def load_config(self) -> ConfigFile:
        """Raises ConfigError when the file is missing or malformed."""
        return load_config_file(self.config_path)

    def load_jobs(self) -> List[CronJob]:
        return self.load_config().jobs

    def run_tick(
        self,
        now: Optional[datetime] = None,
        since: Optional[datetime] = None,
    ) -> TickReport:
        """
        Reload jobs and dispatch one tick. ConfigError propagates to the caller.

        since: instant of the previous tick, when the caller keeps one.
        """
        jobs = self.load_jobs()
        now = now.astimezone(self.tz) if now is not None else self.now()
        if since is not None:
            since = since.astimezone(self.tz)
        return self.dispatcher.tick(jobs, now, since=since)

    def list_schedule(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Describe each job with its execution id and next run, without submitting anything."""
        now = now.astimezone(self.tz) if now is not None else self.now()
        config = self.dispatcher.config
        out = []
        for job in self.load_jobs():
            item = job_to_dict(job)
            item["executionId"] = job.execution_identifier(config.identifier_policy)
            try:
                item["nextRun"] = job.next(now, horizon_years=config.horizon_years).isoformat()
            except JobScheduleError as e:
                item["nextRun"] = None
                item["error"] = e.reason
            out.append(item)
        return {"now": now.isoformat(), "jobs": out}
