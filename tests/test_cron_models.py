"""
Unit tests for the job model and the config file loader.
"""
import json
from datetime import datetime

import pytest
from pydantic import ValidationError

from cronhouse.core.cron.config_file import load_config_file
from cronhouse.core.cron.errors import ConfigError, CronEvaluationError, CronParseError, JobScheduleError
from cronhouse.core.cron.models import CronJob, job_to_dict
from cronhouse.core.cron.naming import IdentifierPolicy


def test_job_next_delegates_to_parser_and_evaluator():
    job = CronJob(name="weekday", cron="0 9 * * 1-5")
    assert job.next(datetime(2024, 1, 1, 10, 0)) == datetime(2024, 1, 2, 9, 0)


def test_job_next_parse_error_is_tagged():
    job = CronJob(name="broken", cron="not a cron")
    with pytest.raises(JobScheduleError) as exc:
        job.next(datetime(2024, 1, 1))
    assert exc.value.job_name == "broken"
    assert isinstance(exc.value.__cause__, CronParseError)
    assert "broken" in str(exc.value)


def test_job_next_evaluation_error_is_tagged():
    job = CronJob(name="never", cron="0 0 31 2 *")
    with pytest.raises(JobScheduleError) as exc:
        job.next(datetime(2024, 1, 1))
    assert isinstance(exc.value.__cause__, CronEvaluationError)


def test_blank_name_rejected():
    with pytest.raises(ValidationError):
        CronJob(name="  ", cron="* * * * *")


def test_job_is_read_only():
    job = CronJob(name="x", cron="* * * * *")
    with pytest.raises(ValidationError):
        job.cron = "0 0 * * *"


def test_execution_request():
    job = CronJob.model_validate({
        "name": "Send Reports",
        "cron": "0 6 * * *",
        "image": "registry.example.com/reports:1.2",
        "command": ["python", "send.py"],
        "environment": {"REGION": "eu", "DRY_RUN": "0"},
    })
    req = job.to_execution_request(IdentifierPolicy(), memory_reservation=256)
    assert req.identifier == job.execution_identifier()
    assert req.image == "registry.example.com/reports:1.2"
    assert req.command == ["python", "send.py"]
    assert [(p.name, p.value) for p in req.environment] == [("REGION", "eu"), ("DRY_RUN", "0")]
    wire = req.model_dump(mode="json", by_alias=True)
    assert wire["memoryReservation"] == 256
    assert wire["environment"][0] == {"name": "REGION", "value": "eu"}


def test_execution_request_defaults():
    job = CronJob(name="bare", cron="* * * * *", image="busybox")
    req = job.to_execution_request(IdentifierPolicy(), memory_reservation=64)
    assert req.command == []
    assert req.environment == []


def test_execution_request_requires_image():
    job = CronJob(name="no-image", cron="* * * * *")
    with pytest.raises(ValueError, match="no image"):
        job.to_execution_request(IdentifierPolicy(), memory_reservation=64)


def test_job_to_dict_omits_unset_fields():
    data = job_to_dict(CronJob(name="a", cron="* * * * *"))
    assert data == {"name": "a", "cron": "* * * * *"}


def test_load_config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "jobs": [
            {"name": "one", "description": "first", "cron": "*/5 * * * *", "image": "busybox"},
            {"name": "two", "cron": "0 0 * * *", "unknown": True},
        ]
    }))
    config = load_config_file(path)
    assert [j.name for j in config.jobs] == ["one", "two"]
    assert config.jobs[0].description == "first"


def test_load_config_file_empty_jobs(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{}")
    assert load_config_file(path).jobs == []


def test_load_config_file_missing(tmp_path):
    with pytest.raises(ConfigError, match="cannot read"):
        load_config_file(tmp_path / "missing.json")


def test_load_config_file_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError, match="not valid JSON"):
        load_config_file(path)


def test_load_config_file_invalid_encoding(tmp_path):
    path = tmp_path / "config.json"
    path.write_bytes(b'{"jobs": [{"name": "\xff", "cron": "* * * * *"}]}')
    with pytest.raises(ConfigError, match="not valid JSON"):
        load_config_file(path)


def test_load_config_file_invalid_shape(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"jobs": [{"name": "no-cron"}]}))
    with pytest.raises(ConfigError, match="invalid shape"):
        load_config_file(path)
