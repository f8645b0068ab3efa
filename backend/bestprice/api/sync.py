"""
Sync API - Scheduled vendor catalog synchronization
Designed to be called by cron-job.org or similar services

Endpoints:
- GET  /api/v1/sync/status   - Schedule, last sync and due flag per job
- POST /api/v1/sync/run-due  - Run every sync that is due now

Security:
- Both endpoints require the X-Sync-Key header with the configured SYNC_API_KEY

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, HTTPException, Query, BackgroundTasks, Header, Depends
from datetime import datetime, timezone
import logging

from bestprice.api.common import http_error
from bestprice.core.config import settings
from bestprice.services.sync_scheduler import SyncScheduler

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sync", tags=["Sync"])

scheduler = SyncScheduler()


# ============================================================================
# Security - API Key Verification
# ============================================================================

async def verify_sync_key(x_sync_key: str = Header(None, alias="X-Sync-Key")):
    """
    Verify the sync API key from X-Sync-Key header.

    If SYNC_API_KEY is not configured, allows all requests.
    If configured, requires matching key.
    """
    if not settings.SYNC_API_KEY:
        logger.warning("SYNC_API_KEY not configured - sync endpoints are unprotected!")
        return

    if not x_sync_key:
        logger.warning("Sync request without X-Sync-Key header")
        raise HTTPException(
            status_code=401,
            detail="Missing X-Sync-Key header. Authentication required."
        )

    if x_sync_key != settings.SYNC_API_KEY:
        logger.warning("Invalid sync key attempt")
        raise HTTPException(
            status_code=401,
            detail="Invalid API key"
        )


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/status", dependencies=[Depends(verify_sync_key)])
async def get_sync_status():
    try:
        jobs = scheduler.get_schedule_status()
        return {
            "status": "success",
            "timestamp": datetime.now(timezone.utc),
            "count": len(jobs),
            "data": jobs,
        }
    except Exception as e:
        raise http_error(e, "getting sync status")


@router.post("/run-due", dependencies=[Depends(verify_sync_key)])
async def run_due_syncs(
    background_tasks: BackgroundTasks,
    run_in_background: bool = Query(default=False, description="Start the syncs and return immediately")
):
    """
    Run every scheduled vendor sync that is due

    This is the endpoint for the external cron to call every few minutes.
    """
    if run_in_background:
        background_tasks.add_task(scheduler.run_due_syncs)
        return {"status": "success", "message": "Due syncs started in background"}

    try:
        runs = await scheduler.run_due_syncs()
        return {
            "status": "success",
            "ran": sum(1 for r in runs if r["due"]),
            "count": len(runs),
            "data": runs,
        }
    except Exception as e:
        raise http_error(e, "running scheduled syncs")
