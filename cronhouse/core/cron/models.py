"""
Job, config file, execution request and tick report models.

Contract:
- config file: {"jobs": [{"name", "description"?, "cron", "image"?, "command"?, "environment"?}]}
- cron: 5-field expression, validated lazily on first evaluation
- execution request: identifier, image, memoryReservation (MiB), command, environment pairs
- tick report: one outcome per job, in input order; status "scheduled" | "failed"
"""
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cronhouse.core.cron.errors import CronEvaluationError, CronParseError, JobScheduleError
from cronhouse.core.cron.evaluator import DEFAULT_HORIZON_YEARS, next_fire_time
from cronhouse.core.cron.expression import parse_expression
from cronhouse.core.cron.naming import IdentifierPolicy, execution_identifier


# --- Execution request sent to the task-execution service ---

class EnvironmentPair(BaseModel):
    name: str
    value: str


class ExecutionRequest(BaseModel):
    """One dispatch attempt for a job. Built per tick, never retried."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    identifier: str
    image: str
    memory_reservation: int = Field(..., gt=0, alias="memoryReservation")
    command: List[str] = Field(default_factory=list)
    environment: List[EnvironmentPair] = Field(default_factory=list)


# --- Job ---

class CronJob(BaseModel):
    """Single job from the config file."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    description: Optional[str] = None
    cron: str
    image: Optional[str] = None
    command: Optional[List[str]] = None
    environment: Optional[Dict[str, str]] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("job name must be non-empty")
        return v

    def next(self, after: datetime, horizon_years: int = DEFAULT_HORIZON_YEARS) -> datetime:
        """Next fire time after `after`. Raises JobScheduleError tagged with this job's name."""
        try:
            descriptor = parse_expression(self.cron)
            return next_fire_time(descriptor, after, horizon_years=horizon_years)
        except (CronParseError, CronEvaluationError) as e:
            raise JobScheduleError(self.name, str(e)) from e

    def execution_identifier(self, policy: IdentifierPolicy = IdentifierPolicy()) -> str:
        return execution_identifier(self.name, policy)

    def to_execution_request(
        self,
        policy: IdentifierPolicy,
        memory_reservation: int,
    ) -> ExecutionRequest:
        if not self.image:
            raise ValueError("no image configured")
        env = [EnvironmentPair(name=k, value=v) for k, v in (self.environment or {}).items()]
        return ExecutionRequest(
            identifier=self.execution_identifier(policy),
            image=self.image,
            memory_reservation=memory_reservation,
            command=list(self.command or []),
            environment=env,
        )


class ConfigFile(BaseModel):
    """Top-level shape of the jobs config file."""
    jobs: List[CronJob] = Field(default_factory=list)


def job_to_dict(job: CronJob) -> dict:
    """Serialize job for JSON responses."""
    return job.model_dump(mode="json", exclude_none=True)


# --- Tick report ---

class JobOutcome(BaseModel):
    """Result of one job in one tick."""
    job: str
    status: Literal["scheduled", "failed"]
    execution_id: Optional[str] = None
    next_run: Optional[datetime] = None
    submitted: bool = False
    task_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def scheduled(cls, job: str, next_run: datetime, **kwargs) -> "JobOutcome":
        return cls(job=job, status="scheduled", next_run=next_run, **kwargs)

    @classmethod
    def failed(cls, job: str, reason: str, **kwargs) -> "JobOutcome":
        return cls(job=job, status="failed", reason=reason, **kwargs)


class TickReport(BaseModel):
    """Ordered per-job outcomes of one tick."""
    now: datetime
    outcomes: List[JobOutcome] = Field(default_factory=list)

    @property
    def failed(self) -> List[JobOutcome]:
        return [o for o in self.outcomes if o.status == "failed"]

    @property
    def scheduled(self) -> List[JobOutcome]:
        return [o for o in self.outcomes if o.status == "scheduled"]
