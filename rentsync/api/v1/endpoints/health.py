"""Health check endpoints."""

from fastapi import Request

from rentsync.api.router import TrailingSlashRouter

router = TrailingSlashRouter()


@router.get("")
async def health_check(request: Request) -> dict[str, str]:
    """Check if the API is healthy.

    Returns:
    --------
        dict: The status of the API and whether the ingest scheduler runs.
    """
    scheduler = getattr(request.app.state, "scheduler", None)
    return {
        "status": "healthy",
        "scheduler": "running" if scheduler is not None and scheduler.running else "stopped",
    }
