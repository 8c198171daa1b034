"""
Task-execution service client.

Submits one ExecutionRequest per call. No retries: a failure or timeout is
reported to the caller as SubmissionError and the dispatcher records it.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import requests

from cronhouse.core.cron.errors import SubmissionError
from cronhouse.core.cron.models import ExecutionRequest

logger = logging.getLogger(__name__)


class TaskExecutor(ABC):
    """Abstract base class for task-execution service clients."""

    @abstractmethod
    def submit(self, request: ExecutionRequest) -> str:
        """
        Submit a task.

        Args:
            request: Task to run

        Returns:
            Task id assigned by the service

        Raises:
            SubmissionError if the service rejects the request or times out
        """
        pass


class TaskExecutionClient(TaskExecutor):
    """HTTP client for the task-execution service (POST {base_url}/tasks)."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
    ):
        """
        Args:
            base_url: Base URL of the service (e.g. http://tasks.internal/v1)
            token: Optional bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.tasks_url = f"{self.base_url}/tasks"

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def submit(self, request: ExecutionRequest) -> str:
        payload = request.model_dump(mode="json", by_alias=True)
        try:
            response = requests.post(
                self.tasks_url,
                json=payload,
                headers=self._get_headers(),
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise SubmissionError("timeout") from e
        except requests.RequestException as e:
            raise SubmissionError(f"request failed: {e}") from e

        if response.status_code >= 400:
            detail = response.text[:200] if response.text else ""
            raise SubmissionError(
                f"service returned {response.status_code}: {detail}".rstrip(": "),
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        task_id = None
        if isinstance(data, dict):
            task_id = data.get("taskId") or data.get("id")
        logger.info("Submitted task %s (task id %s)", request.identifier, task_id)
        return str(task_id or request.identifier)
