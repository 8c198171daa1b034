"""
Tests for the task-execution service client (requests is faked).
"""
from datetime import datetime, timedelta

import pytest
import requests

from cronhouse.core.cron import executor as executor_module
from cronhouse.core.cron.dispatcher import DispatchConfig, Dispatcher
from cronhouse.core.cron.errors import SubmissionError
from cronhouse.core.cron.executor import TaskExecutionClient
from cronhouse.core.cron.models import CronJob, EnvironmentPair, ExecutionRequest


class FakeResponse:
    def __init__(self, status_code=200, data=None, text=""):
        self.status_code = status_code
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise ValueError("no json")
        return self._data


def _request():
    return ExecutionRequest(
        identifier="cron-report-0123abcd",
        image="busybox",
        memory_reservation=128,
        command=["echo", "hi"],
        environment=[EnvironmentPair(name="A", value="1")],
    )


def test_submit_posts_request(monkeypatch):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return FakeResponse(201, {"taskId": "abc-123"})

    monkeypatch.setattr(executor_module.requests, "post", fake_post)
    client = TaskExecutionClient("http://tasks.local/v1/", token="secret", timeout=3)
    assert client.submit(_request()) == "abc-123"

    call = calls[0]
    assert call["url"] == "http://tasks.local/v1/tasks"
    assert call["timeout"] == 3
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert call["json"]["identifier"] == "cron-report-0123abcd"
    assert call["json"]["memoryReservation"] == 128
    assert call["json"]["environment"] == [{"name": "A", "value": "1"}]


def test_submit_without_token_or_task_id(monkeypatch):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append(headers)
        return FakeResponse(202)

    monkeypatch.setattr(executor_module.requests, "post", fake_post)
    client = TaskExecutionClient("http://tasks.local")
    assert client.submit(_request()) == "cron-report-0123abcd"
    assert "Authorization" not in calls[0]


def test_timeout_raises_submission_error(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(executor_module.requests, "post", fake_post)
    with pytest.raises(SubmissionError) as exc:
        TaskExecutionClient("http://tasks.local").submit(_request())
    assert exc.value.reason == "timeout"


def test_connection_error_raises_submission_error(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(executor_module.requests, "post", fake_post)
    with pytest.raises(SubmissionError, match="request failed"):
        TaskExecutionClient("http://tasks.local").submit(_request())


def test_http_error_raises_submission_error(monkeypatch):
    monkeypatch.setattr(
        executor_module.requests,
        "post",
        lambda *a, **kw: FakeResponse(503, text="unavailable"),
    )
    with pytest.raises(SubmissionError) as exc:
        TaskExecutionClient("http://tasks.local").submit(_request())
    assert exc.value.status_code == 503
    assert "503" in exc.value.reason


def test_timeout_during_tick_is_reported_not_raised(monkeypatch):
    def fake_post(url, json=None, headers=None, timeout=None):
        if json["identifier"].startswith("cron-slow-"):
            raise requests.ReadTimeout("timed out")
        return FakeResponse(200, {"id": "ok-1"})

    monkeypatch.setattr(executor_module.requests, "post", fake_post)
    dispatcher = Dispatcher(
        DispatchConfig(due_window=timedelta(0)),
        executor=TaskExecutionClient("http://tasks.local", timeout=0.5),
    )
    jobs = [
        CronJob(name="slow", cron="*/5 * * * *", image="busybox"),
        CronJob(name="quick", cron="*/5 * * * *", image="busybox"),
    ]
    report = dispatcher.tick(jobs, datetime(2024, 1, 1, 12, 0))
    assert report.outcomes[0].status == "failed"
    assert report.outcomes[0].reason == "timeout"
    assert report.outcomes[1].status == "scheduled"
    assert report.outcomes[1].task_id == "ok-1"
