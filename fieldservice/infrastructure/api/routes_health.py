"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from fieldservice.adapters.persistence.database import get_session
from fieldservice.infrastructure.scheduler import AUTO_CHECKOUT_JOB_ID

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request, session: AsyncSession = Depends(get_session)):
    """Check API and database connectivity, and whether the auto-checkout job is scheduled."""
    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {e}"

    scheduler = getattr(request.app.state, "scheduler", None)
    job = scheduler.get_job(AUTO_CHECKOUT_JOB_ID) if scheduler is not None else None

    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "autoCheckout": {
            "scheduled": job is not None,
            "nextRun": job.next_run_time.isoformat() if job and job.next_run_time else None,
        },
        "service": "Field Service Core",
    }
