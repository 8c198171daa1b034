"""
Secure response headers and HTTPS redirect.

The redirect applies to every path except the health check so load balancers
can probe over plain HTTP. Both HSTS and the redirect are off in the "local"
environment.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from cronhouse.core.config import Settings

logger = logging.getLogger(__name__)

HEALTHCHECK_PATH = "/_healthcheck.json"

STS_SECONDS = 315360000

# Proxy header -> value that marks the original request as HTTPS
SSL_PROXY_HEADERS = {"X-Forwarded-Proto": "https"}


def is_ssl_request(request: Request) -> bool:
    if request.url.scheme.lower() == "https":
        return True
    return any(
        request.headers.get(header, "").lower() == value
        for header, value in SSL_PROXY_HEADERS.items()
    )


def install_security_middleware(app: FastAPI, settings: Settings) -> None:
    development = settings.is_development

    @app.middleware("http")
    async def secure_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        if not development and is_ssl_request(request):
            response.headers["Strict-Transport-Security"] = (
                f"max-age={STS_SECONDS}; includeSubDomains; preload"
            )
        return response

    # Registered last so it runs first
    @app.middleware("http")
    async def ssl_redirect(request: Request, call_next):
        if request.url.path != HEALTHCHECK_PATH and not development:
            if not is_ssl_request(request):
                url = str(request.url.replace(scheme="https"))
                logger.debug("Redirecting %s to %s", request.url.path, url)
                return RedirectResponse(url, status_code=301)
        return await call_next(request)
