"""
Tick dispatcher: evaluate each job's next fire time and, when a task executor
is configured, submit due jobs to the task-execution service.

Every job is handled independently. A parse, evaluation or submission failure
becomes a "failed" outcome for that job only; the tick always completes.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Literal, Optional, Sequence

from cronhouse.core.cron.errors import JobScheduleError, SubmissionError, TickInProgressError
from cronhouse.core.cron.evaluator import DEFAULT_HORIZON_YEARS
from cronhouse.core.cron.executor import TaskExecutor
from cronhouse.core.cron.models import CronJob, JobOutcome, TickReport
from cronhouse.core.cron.naming import IdentifierPolicy
from cronhouse.core.observability.metrics import SchedulerMetrics

logger = logging.getLogger(__name__)

TickConcurrency = Literal["allow", "single-flight"]


@dataclass(frozen=True)
class DispatchConfig:
    """How ticks are dispatched. Built once per process from Settings."""
    identifier_policy: IdentifierPolicy = field(default_factory=IdentifierPolicy)
    horizon_years: int = DEFAULT_HORIZON_YEARS
    # Without a previous tick, a job is due when it has a fire time in
    # (now - due_window, now]. Zero submits every tick.
    due_window: timedelta = timedelta(seconds=60)
    memory_reservation: int = 128
    max_workers: int = 1
    concurrency: TickConcurrency = "allow"


class Dispatcher:
    """Runs ticks over a job list."""

    def __init__(
        self,
        config: Optional[DispatchConfig] = None,
        executor: Optional[TaskExecutor] = None,
        metrics: Optional[SchedulerMetrics] = None,
    ):
        """
        config: dispatch settings (defaults when omitted).
        executor: task-execution client; None means compute-and-log only.
        metrics: optional counters updated after each tick.
        """
        self.config = config or DispatchConfig()
        self.executor = executor
        self.metrics = metrics
        self._tick_lock = threading.Lock()

    def tick(
        self,
        jobs: Sequence[CronJob],
        now: datetime,
        since: Optional[datetime] = None,
    ) -> TickReport:
        """
        Evaluate (and maybe submit) every job against `now`. Outcomes follow input order.

        `since` is the previous tick's instant. When given, a job is due if it has
        a fire time in (since, now]; otherwise the configured due window applies.
        """
        if self.config.concurrency == "single-flight":
            if not self._tick_lock.acquire(blocking=False):
                raise TickInProgressError("another tick is still running")
            try:
                return self._run_tick(jobs, now, since)
            finally:
                self._tick_lock.release()
        return self._run_tick(jobs, now, since)

    def _run_tick(self, jobs: Sequence[CronJob], now: datetime, since: Optional[datetime]) -> TickReport:
        job_list: List[CronJob] = list(jobs)
        seen = set()
        duplicates = set()
        for idx, job in enumerate(job_list):
            if job.name in seen:
                duplicates.add(idx)
            seen.add(job.name)

        def process(idx: int) -> JobOutcome:
            job = job_list[idx]
            if idx in duplicates:
                logger.warning("cron job %s listed more than once; skipping duplicate", job.name)
                return JobOutcome.failed(job.name, "duplicate job name")
            return self._process_job(job, now, since)

        indexes = range(len(job_list))
        if self.config.max_workers > 1 and len(job_list) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                outcomes = list(pool.map(process, indexes))
        else:
            outcomes = [process(i) for i in indexes]

        report = TickReport(now=now, outcomes=outcomes)
        logger.info(
            "Tick at %s: %d scheduled, %d failed",
            now.isoformat(),
            len(report.scheduled),
            len(report.failed),
        )
        if self.metrics is not None:
            self.metrics.record_tick(report)
        return report

    def _process_job(self, job: CronJob, now: datetime, since: Optional[datetime]) -> JobOutcome:
        try:
            return self._evaluate_and_submit(job, now, since)
        except Exception as e:
            logger.exception("cron job %s failed: %s", job.name, e)
            return JobOutcome.failed(job.name, str(e) or type(e).__name__)

    def _evaluate_and_submit(self, job: CronJob, now: datetime, since: Optional[datetime]) -> JobOutcome:
        policy = self.config.identifier_policy
        execution_id = job.execution_identifier(policy)
        try:
            next_run = job.next(now, horizon_years=self.config.horizon_years)
        except JobScheduleError as e:
            logger.warning("Error getting next run for %s: %s", job.name, e.reason)
            return JobOutcome.failed(job.name, e.reason, execution_id=execution_id)

        if self.executor is None:
            logger.info("%s - %s", job.name, next_run.isoformat())
            return JobOutcome.scheduled(job.name, next_run, execution_id=execution_id)

        if not self._is_due(job, now, since):
            return JobOutcome.scheduled(job.name, next_run, execution_id=execution_id)

        try:
            request = job.to_execution_request(policy, self.config.memory_reservation)
        except ValueError as e:
            logger.warning("cron job %s cannot be submitted: %s", job.name, e)
            return JobOutcome.failed(job.name, str(e), execution_id=execution_id, next_run=next_run)

        try:
            task_id = self.executor.submit(request)
        except SubmissionError as e:
            logger.warning("Submission of %s failed: %s", execution_id, e.reason)
            return JobOutcome.failed(job.name, e.reason, execution_id=execution_id, next_run=next_run)

        return JobOutcome.scheduled(
            job.name,
            next_run,
            execution_id=execution_id,
            submitted=True,
            task_id=task_id,
        )

    def _is_due(self, job: CronJob, now: datetime, since: Optional[datetime]) -> bool:
        window = self.config.due_window
        if window <= timedelta(0):
            return True
        start = since if since is not None else now - window
        return job.next(start, horizon_years=self.config.horizon_years) <= now
