"""
Vendor Sync API - manual runs, schedules and status of the catalog syncs

Endpoints:
- POST /api/admin/bill-hicks/manual-master-catalog-sync
- POST /api/admin/bill-hicks/manual-inventory-sync
- POST /api/admin/bill-hicks/clear-master-catalog-error
- POST /api/admin/bill-hicks/clear-inventory-error
- POST /api/admin/bill-hicks/schedule
- POST /api/sports-south/catalog/sync-full
- POST /api/sports-south/catalog/sync-incremental
- GET  /api/sports-south/catalog/info
- POST /api/sports-south/schedule/toggle
- POST /api/sports-south/schedule/update
- POST /api/chattanooga/manual-sync
- POST /api/chattanooga/clear-error
- POST /api/chattanooga/schedule/toggle
- POST /api/chattanooga/schedule/update
- POST /api/lipseys/catalog/sync
- POST /api/lipseys/schedule/update

All endpoints require a platform admin. Sync endpoints accept
run_in_background=true to return immediately.

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel

from bestprice.api.common import http_error
from bestprice.core.auth import require_admin
from bestprice.core.rate_limit import endpoint_rate_limit
from bestprice.services.bill_hicks_sync_service import BillHicksSyncService
from bestprice.services.chattanooga_sync_service import ChattanoogaSyncService
from bestprice.services.lipseys_sync_service import LipseysSyncService
from bestprice.services.sports_south_sync_service import SportsSouthSyncService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Vendor Sync"], dependencies=[Depends(require_admin)])

bill_hicks_service = BillHicksSyncService()
chattanooga_service = ChattanoogaSyncService()
lipseys_service = LipseysSyncService()
sports_south_service = SportsSouthSyncService()


# ============================================================================
# Request Models
# ============================================================================

class BillHicksScheduleRequest(BaseModel):
    catalog_enabled: Optional[bool] = None
    catalog_time: Optional[str] = None
    inventory_enabled: Optional[bool] = None
    inventory_time: Optional[str] = None


class ScheduleToggleRequest(BaseModel):
    enabled: bool


class ScheduleUpdateRequest(BaseModel):
    time: Optional[str] = None
    frequency: Optional[str] = None


async def _run(runner, background_tasks: BackgroundTasks, run_in_background: bool, label: str):
    if run_in_background:
        background_tasks.add_task(runner)
        return {"status": "success", "message": f"{label} started in background"}

    result = await runner()
    return {"status": "success" if result.success else "error", "data": result.to_dict()}


# ============================================================================
# Bill Hicks
# ============================================================================

@router.post("/api/admin/bill-hicks/manual-master-catalog-sync", dependencies=[Depends(endpoint_rate_limit(5))])
async def bill_hicks_catalog_sync(
    background_tasks: BackgroundTasks,
    run_in_background: bool = Query(False)
):
    try:
        return await _run(bill_hicks_service.run_catalog_sync, background_tasks, run_in_background,
                          "Bill Hicks master catalog sync")
    except Exception as e:
        raise http_error(e, "running Bill Hicks catalog sync")


@router.post("/api/admin/bill-hicks/manual-inventory-sync", dependencies=[Depends(endpoint_rate_limit(5))])
async def bill_hicks_inventory_sync(
    background_tasks: BackgroundTasks,
    run_in_background: bool = Query(False)
):
    try:
        return await _run(bill_hicks_service.run_inventory_sync, background_tasks, run_in_background,
                          "Bill Hicks inventory sync")
    except Exception as e:
        raise http_error(e, "running Bill Hicks inventory sync")


@router.post("/api/admin/bill-hicks/clear-master-catalog-error")
async def bill_hicks_clear_catalog_error():
    try:
        return {"status": "success", "data": {"sync_status": bill_hicks_service.clear_catalog_error()}}
    except Exception as e:
        raise http_error(e, "clearing Bill Hicks catalog error")


@router.post("/api/admin/bill-hicks/clear-inventory-error")
async def bill_hicks_clear_inventory_error():
    try:
        return {"status": "success", "data": {"sync_status": bill_hicks_service.clear_inventory_error()}}
    except Exception as e:
        raise http_error(e, "clearing Bill Hicks inventory error")


@router.post("/api/admin/bill-hicks/schedule")
async def bill_hicks_schedule(payload: BillHicksScheduleRequest):
    try:
        return {"status": "success", "data": bill_hicks_service.update_schedule(**payload.model_dump())}
    except Exception as e:
        raise http_error(e, "updating Bill Hicks schedule")


# ============================================================================
# Sports South
# ============================================================================

@router.post("/api/sports-south/catalog/sync-full", dependencies=[Depends(endpoint_rate_limit(5))])
async def sports_south_full_sync(
    background_tasks: BackgroundTasks,
    run_in_background: bool = Query(False)
):
    try:
        return await _run(sports_south_service.run_full_sync, background_tasks, run_in_background,
                          "Sports South full catalog sync")
    except Exception as e:
        raise http_error(e, "running Sports South full sync")


@router.post("/api/sports-south/catalog/sync-incremental", dependencies=[Depends(endpoint_rate_limit(5))])
async def sports_south_incremental_sync(
    background_tasks: BackgroundTasks,
    run_in_background: bool = Query(False)
):
    try:
        return await _run(sports_south_service.run_incremental_sync, background_tasks, run_in_background,
                          "Sports South incremental sync")
    except Exception as e:
        raise http_error(e, "running Sports South incremental sync")


@router.get("/api/sports-south/catalog/info")
async def sports_south_catalog_info():
    try:
        return {"status": "success", "data": sports_south_service.get_catalog_info()}
    except Exception as e:
        raise http_error(e, "fetching Sports South catalog info")


@router.post("/api/sports-south/schedule/toggle")
async def sports_south_schedule_toggle(payload: ScheduleToggleRequest):
    try:
        return {"status": "success", "data": sports_south_service.set_schedule_enabled(payload.enabled)}
    except Exception as e:
        raise http_error(e, "toggling Sports South schedule")


@router.post("/api/sports-south/schedule/update")
async def sports_south_schedule_update(payload: ScheduleUpdateRequest):
    try:
        data = sports_south_service.update_schedule(time_of_day=payload.time, frequency=payload.frequency)
        return {"status": "success", "data": data}
    except Exception as e:
        raise http_error(e, "updating Sports South schedule")


# ============================================================================
# Chattanooga
# ============================================================================

@router.post("/api/chattanooga/manual-sync", dependencies=[Depends(endpoint_rate_limit(5))])
async def chattanooga_manual_sync(
    background_tasks: BackgroundTasks,
    run_in_background: bool = Query(False)
):
    try:
        return await _run(chattanooga_service.run_sync, background_tasks, run_in_background,
                          "Chattanooga catalog sync")
    except Exception as e:
        raise http_error(e, "running Chattanooga sync")


@router.post("/api/chattanooga/clear-error")
async def chattanooga_clear_error():
    try:
        return {"status": "success", "data": {"sync_status": chattanooga_service.clear_sync_error()}}
    except Exception as e:
        raise http_error(e, "clearing Chattanooga error")


@router.post("/api/chattanooga/schedule/toggle")
async def chattanooga_schedule_toggle(payload: ScheduleToggleRequest):
    try:
        return {"status": "success", "data": chattanooga_service.set_schedule_enabled(payload.enabled)}
    except Exception as e:
        raise http_error(e, "toggling Chattanooga schedule")


@router.post("/api/chattanooga/schedule/update")
async def chattanooga_schedule_update(payload: ScheduleUpdateRequest):
    try:
        data = chattanooga_service.update_schedule(time_of_day=payload.time, frequency=payload.frequency)
        return {"status": "success", "data": data}
    except Exception as e:
        raise http_error(e, "updating Chattanooga schedule")


# ============================================================================
# Lipsey's
# ============================================================================

@router.post("/api/lipseys/catalog/sync", dependencies=[Depends(endpoint_rate_limit(5))])
async def lipseys_catalog_sync(
    background_tasks: BackgroundTasks,
    run_in_background: bool = Query(False)
):
    try:
        return await _run(lipseys_service.run_catalog_sync, background_tasks, run_in_background,
                          "Lipsey's catalog sync")
    except Exception as e:
        raise http_error(e, "running Lipsey's catalog sync")


class LipseysScheduleRequest(BaseModel):
    enabled: Optional[bool] = None
    time: Optional[str] = None


@router.post("/api/lipseys/schedule/update")
async def lipseys_schedule_update(payload: LipseysScheduleRequest):
    try:
        data = lipseys_service.update_schedule(enabled=payload.enabled, time_of_day=payload.time)
        return {"status": "success", "data": data}
    except Exception as e:
        raise http_error(e, "updating Lipsey's schedule")
