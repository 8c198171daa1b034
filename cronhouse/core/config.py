"""
Configuration management for the cronhouse scheduler.

Settings are read from environment variables (and .env) once per process and
passed explicitly to the components that need them.
"""
import os
from datetime import timedelta
from pathlib import Path
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cronhouse.core.cron.dispatcher import DispatchConfig
from cronhouse.core.cron.executor import TaskExecutionClient, TaskExecutor
from cronhouse.core.cron.naming import IdentifierPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Load .env from project root (cronhouse/core/config.py -> parent.parent.parent)
        env_file=str(Path(__file__).resolve().parent.parent.parent / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    # Environment ("local" disables the SSL redirect and HSTS)
    environment: str = os.getenv("FLM_ENV", "production")

    # Debug - handle non-boolean values gracefully
    debug: bool = False

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, v):
        """Parse debug from environment, handling non-boolean values."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() in ("true", "1", "yes")
        return False

    # API
    api_host: str = "0.0.0.0"
    api_port: int = int(os.getenv("PORT", "8080"))

    # Jobs config file, re-read on every tick
    scheduler_config: str = "config.example.json"

    # IANA timezone cron expressions are evaluated in
    scheduler_timezone: str = "UTC"

    @field_validator("scheduler_timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone {v!r}")
        return v

    # In-process timer; off by default (ticks come from GET /cron)
    scheduler_enabled: bool = False
    scheduler_tick_interval: int = 60

    # Cron evaluation / dispatch
    cron_search_horizon_years: int = 5
    dispatch_due_window_seconds: int = 60
    dispatch_max_workers: int = 1
    dispatch_concurrency: Literal["allow", "single-flight"] = "allow"

    # Task-execution service; unset means compute-and-log only
    task_service_url: Optional[str] = None
    task_service_token: Optional[str] = None
    task_service_timeout: float = 10.0
    task_memory_reservation: int = 128

    # Execution identifier naming rules of the task-execution service
    identifier_prefix: str = "cron"
    identifier_charset: str = "a-z0-9"
    identifier_max_length: int = 255
    identifier_hash_length: int = 8

    # Build info reported by the health check
    git_revision: str = ""
    git_tag: str = ""
    git_branch: str = ""

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == "local"

    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.scheduler_timezone)

    def identifier_policy(self) -> IdentifierPolicy:
        return IdentifierPolicy(
            prefix=self.identifier_prefix,
            allowed_chars=self.identifier_charset,
            max_length=self.identifier_max_length,
            hash_length=self.identifier_hash_length,
        )

    def dispatch_config(self) -> DispatchConfig:
        return DispatchConfig(
            identifier_policy=self.identifier_policy(),
            horizon_years=self.cron_search_horizon_years,
            due_window=timedelta(seconds=self.dispatch_due_window_seconds),
            memory_reservation=self.task_memory_reservation,
            max_workers=self.dispatch_max_workers,
            concurrency=self.dispatch_concurrency,
        )

    def task_executor(self) -> Optional[TaskExecutor]:
        if not self.task_service_url:
            return None
        return TaskExecutionClient(
            base_url=self.task_service_url,
            token=self.task_service_token,
            timeout=self.task_service_timeout,
        )
