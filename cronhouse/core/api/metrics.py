"""
Scheduler metrics endpoint (in-memory counters since process start).
"""
from fastapi import APIRouter, Request

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("")
def metrics(request: Request):
    m = request.app.state.metrics
    stats = m.get_stats()
    stats["failure_rate"] = m.get_failure_rate()
    return stats
