"""
cronhouse - Main FastAPI application.

Reads the jobs config file, exposes the schedule over HTTP and dispatches
ticks to the task-execution service.
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from cronhouse.core.api import cron, health, metrics
from cronhouse.core.config import Settings
from cronhouse.core.cron.dispatcher import Dispatcher
from cronhouse.core.cron.scheduler import CronScheduler
from cronhouse.core.cron.service import CronService
from cronhouse.core.observability.metrics import SchedulerMetrics
from cronhouse.core.security import HEALTHCHECK_PATH, install_security_middleware

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app and its components once; they are shared through app.state."""
    settings = settings or Settings()
    configure_logging(settings)

    scheduler_metrics = SchedulerMetrics()
    executor = settings.task_executor()
    dispatcher = Dispatcher(
        config=settings.dispatch_config(),
        executor=executor,
        metrics=scheduler_metrics,
    )
    cron_service = CronService(
        config_path=settings.scheduler_config,
        dispatcher=dispatcher,
        tz=settings.tzinfo(),
    )
    scheduler = CronScheduler(cron_service, interval=settings.scheduler_tick_interval)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle application startup and shutdown."""
        logger.info("Starting up on %s:%s", settings.api_host, settings.api_port)
        logger.info("Jobs config: %s", settings.scheduler_config)
        if executor is None:
            logger.info("No TASK_SERVICE_URL set; ticks compute and log next runs only")
        if settings.scheduler_enabled:
            await scheduler.start()
        yield
        await scheduler.stop()
        logger.info("cronhouse shutting down")

    app = FastAPI(
        title="cronhouse",
        description="Cron job scheduler for containerized tasks",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.metrics = scheduler_metrics
    app.state.cron_service = cron_service
    app.state.scheduler = scheduler

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests. Health check at DEBUG to reduce log spam."""
        path = request.url.path
        level = logger.debug if path == HEALTHCHECK_PATH else logger.info
        level(f"{request.method} {path}")
        response = await call_next(request)
        level(f"{request.method} {path} - {response.status_code}")
        return response

    install_security_middleware(app, settings)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "error": str(exc) if settings.debug else None,
            },
        )

    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(cron.router)
    return app


if __name__ == "__main__":
    import uvicorn
    settings = Settings()
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
    )
