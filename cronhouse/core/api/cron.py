"""
Schedule endpoints: GET / (config file), GET /cron (run a tick), GET /jobs (next runs).
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from cronhouse.core.cron.errors import ConfigError, TickInProgressError
from cronhouse.core.cron.service import CronService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cron"])


def get_cron_service(request: Request) -> CronService:
    return request.app.state.cron_service


@router.get("/")
def home(service: CronService = Depends(get_cron_service)) -> Dict[str, Any]:
    """Return the parsed config file."""
    try:
        config = service.load_config()
    except ConfigError as e:
        logger.error("Error getting config: %s", e)
        raise HTTPException(status_code=500, detail="Bad config file")
    return config.model_dump(mode="json", exclude_none=True)


@router.get("/cron")
def run_cron(service: CronService = Depends(get_cron_service)) -> Dict[str, Any]:
    """Run one tick now and return the per-job report."""
    try:
        report = service.run_tick()
    except ConfigError as e:
        logger.error("Error getting config: %s", e)
        raise HTTPException(status_code=500, detail="Bad config file")
    except TickInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return report.model_dump(mode="json")


@router.get("/jobs")
def list_jobs(service: CronService = Depends(get_cron_service)) -> Dict[str, Any]:
    """List jobs with execution id and next run; nothing is submitted."""
    try:
        return service.list_schedule()
    except ConfigError as e:
        logger.error("Error getting config: %s", e)
        raise HTTPException(status_code=500, detail="Bad config file")
