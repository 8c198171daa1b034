"""
Integration tests for the HTTP surface.
"""
import json

import pytest
from fastapi.testclient import TestClient

from cronhouse.core.config import Settings
from cronhouse.core.main import create_app


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "jobs": [
            {"name": "hello", "description": "say hello", "cron": "*/5 * * * *", "image": "busybox",
             "command": ["echo", "hello"]},
            {"name": "broken", "cron": "99 * * * *"},
        ]
    }))
    return path


def _client(**overrides):
    values = {"environment": "local", "scheduler_enabled": False}
    values.update(overrides)
    return TestClient(create_app(Settings(**values)))


def test_home_returns_config(config_path):
    with _client(scheduler_config=str(config_path)) as client:
        resp = client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert [j["name"] for j in data["jobs"]] == ["hello", "broken"]
    assert data["jobs"][0]["command"] == ["echo", "hello"]


def test_cron_runs_tick(config_path):
    with _client(scheduler_config=str(config_path)) as client:
        resp = client.get("/cron")
    assert resp.status_code == 200
    outcomes = resp.json()["outcomes"]
    assert outcomes[0]["job"] == "hello"
    assert outcomes[0]["status"] == "scheduled"
    assert outcomes[0]["next_run"] is not None
    assert outcomes[0]["submitted"] is False
    assert outcomes[1]["status"] == "failed"
    assert "minute" in outcomes[1]["reason"]


def test_jobs_lists_next_runs(config_path):
    with _client(scheduler_config=str(config_path)) as client:
        resp = client.get("/jobs")
    assert resp.status_code == 200
    jobs = resp.json()["jobs"]
    assert jobs[0]["executionId"].startswith("cron-hello-")
    assert jobs[0]["nextRun"] is not None
    assert jobs[1]["nextRun"] is None
    assert "error" in jobs[1]


@pytest.mark.parametrize("path", ["/", "/cron", "/jobs"])
def test_bad_config_file(tmp_path, path):
    bad = tmp_path / "bad.json"
    bad.write_text("{oops")
    with _client(scheduler_config=str(bad)) as client:
        resp = client.get(path)
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Bad config file"


def test_healthcheck():
    with _client(git_revision="abc123", git_tag="v1", git_branch="main") as client:
        resp = client.get("/_healthcheck.json")
    assert resp.status_code == 200
    assert resp.json() == {"healthy": "true", "revision": "abc123", "tag": "v1", "branch": "main"}


def test_metrics_count_ticks(config_path):
    with _client(scheduler_config=str(config_path)) as client:
        client.get("/cron")
        client.get("/cron")
        stats = client.get("/metrics").json()
    assert stats["ticks_total"] == 2
    assert stats["jobs_failed"] == 2
    assert stats["jobs_scheduled"] == 2
    assert stats["failure_rate"] == pytest.approx(0.5)


def test_secure_headers(config_path):
    with _client(scheduler_config=str(config_path)) as client:
        resp = client.get("/")
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert "Strict-Transport-Security" not in resp.headers


def test_ssl_redirect_outside_local(config_path):
    with _client(environment="production", scheduler_config=str(config_path)) as client:
        resp = client.get("/cron", follow_redirects=False)
        assert resp.status_code == 301
        assert resp.headers["location"] == "https://testserver/cron"

        health = client.get("/_healthcheck.json", follow_redirects=False)
        assert health.status_code == 200

        proxied = client.get("/", headers={"X-Forwarded-Proto": "https"}, follow_redirects=False)
        assert proxied.status_code == 200
        assert proxied.headers["Strict-Transport-Security"] == (
            "max-age=315360000; includeSubDomains; preload"
        )
