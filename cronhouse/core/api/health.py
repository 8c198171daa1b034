"""
Health check endpoint.

Returns service status and build information. Exempt from the HTTPS redirect.
"""
from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/_healthcheck.json")
def health(request: Request):
    settings = request.app.state.settings
    return {
        "healthy": "true",
        "revision": settings.git_revision,
        "tag": settings.git_tag,
        "branch": settings.git_branch,
    }
