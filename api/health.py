"""Health check endpoints."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint.

    Returns:
        Scheduler running status and the IDs of scheduled jobs
    """
    scheduler_service = getattr(request.app.state, "scheduler_service", None)
    if scheduler_service is None:
        return {"scheduler_running": False, "scheduled_jobs": []}

    return {
        "scheduler_running": scheduler_service.running,
        "scheduled_jobs": [job.id for job in scheduler_service.get_jobs()],
    }


@router.get("/api/health")
async def health_check_api(request: Request):
    """Health check endpoint (alternative path)."""
    return await health_check(request)
