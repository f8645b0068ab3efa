"""
Sync Scheduler - decides which vendor syncs are due and runs them

There is no in-process timer: an external cron calls
POST /api/v1/sync/run-due (every 15 minutes or so) and each job whose
schedule has come up since its last sync is run once.

Author: TM3
Date: 2025-10-17
"""
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any, Callable, Awaitable

from bestprice.repositories.supported_vendor_repository import SupportedVendorRepository
from bestprice.services.vendor_registry import vendor_kind, BILL_HICKS, CHATTANOOGA, LIPSEYS, SPORTS_SOUTH
from bestprice.services.vendor_sync_base import SCHEDULE_TIME, CatalogSyncResult
from bestprice.services.bill_hicks_sync_service import BillHicksSyncService
from bestprice.services.chattanooga_sync_service import ChattanoogaSyncService
from bestprice.services.lipseys_sync_service import LipseysSyncService
from bestprice.services.sports_south_sync_service import SportsSouthSyncService

logger = logging.getLogger(__name__)

SATURDAY = 5
MONDAY = 0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_sync_due(
    enabled: bool,
    schedule_time: Optional[str],
    frequency: Optional[str],
    last_sync: Optional[datetime],
    now: Optional[datetime] = None
) -> bool:
    """
    True when today's scheduled run has come and not yet happened

    weekdays skips Saturday and Sunday; weekly runs on Mondays only.
    Times are UTC.
    """
    if not enabled:
        return False

    match = SCHEDULE_TIME.match((schedule_time or "").strip())
    if not match:
        return False

    now = _as_utc(now or datetime.now(timezone.utc))
    frequency = (frequency or "daily").lower()

    if frequency == "weekdays" and now.weekday() >= SATURDAY:
        return False
    if frequency == "weekly" and now.weekday() != MONDAY:
        return False

    scheduled = now.replace(hour=int(match.group(1)), minute=int(match.group(2)), second=0, microsecond=0)
    if now < scheduled:
        return False

    return last_sync is None or _as_utc(last_sync) < scheduled


# ============================================================================
# Jobs
# ============================================================================

@dataclass
class ScheduledJob:
    name: str
    vendor_kind: str
    enabled_column: str
    time_column: str
    last_sync_column: str
    frequency_column: Optional[str] = None


SCHEDULED_JOBS = [
    ScheduledJob("bill_hicks_catalog", BILL_HICKS, "bill_hicks_master_catalog_sync_enabled",
                 "bill_hicks_master_catalog_sync_time", "bill_hicks_master_catalog_last_sync"),
    ScheduledJob("bill_hicks_inventory", BILL_HICKS, "bill_hicks_inventory_sync_enabled",
                 "bill_hicks_inventory_sync_time", "bill_hicks_last_inventory_sync"),
    ScheduledJob("chattanooga_catalog", CHATTANOOGA, "chattanooga_schedule_enabled",
                 "chattanooga_schedule_time", "chattanooga_last_sync", "chattanooga_schedule_frequency"),
    ScheduledJob("sports_south_incremental", SPORTS_SOUTH, "sports_south_schedule_enabled",
                 "sports_south_schedule_time", "last_catalog_sync", "sports_south_schedule_frequency"),
    ScheduledJob("lipseys_catalog", LIPSEYS, "lipseys_catalog_sync_enabled",
                 "lipseys_catalog_sync_time", "lipseys_last_catalog_sync"),
]


@dataclass
class JobRun:
    job: str
    due: bool
    success: Optional[bool] = None
    message: Optional[str] = None
    result: Optional[Dict[str, Any]] = None


class SyncScheduler:

    def __init__(
        self,
        vendor_repository: Optional[SupportedVendorRepository] = None,
        runners: Optional[Dict[str, Callable[[], Awaitable[CatalogSyncResult]]]] = None
    ):
        self.vendor_repository = vendor_repository or SupportedVendorRepository()
        self.runners = runners or self._default_runners()

    def _default_runners(self) -> Dict[str, Callable[[], Awaitable[CatalogSyncResult]]]:
        bill_hicks = BillHicksSyncService(vendor_repository=self.vendor_repository)
        return {
            "bill_hicks_catalog": bill_hicks.run_catalog_sync,
            "bill_hicks_inventory": bill_hicks.run_inventory_sync,
            "chattanooga_catalog": ChattanoogaSyncService(vendor_repository=self.vendor_repository).run_sync,
            "sports_south_incremental": SportsSouthSyncService(vendor_repository=self.vendor_repository).run_incremental_sync,
            "lipseys_catalog": LipseysSyncService(vendor_repository=self.vendor_repository).run_catalog_sync,
        }

    def _vendors_by_kind(self) -> Dict[str, Any]:
        vendors = {}
        for vendor in self.vendor_repository.find_all():
            kind = vendor_kind(vendor)
            if kind and kind not in vendors:
                vendors[kind] = vendor
        return vendors

    def get_schedule_status(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Schedule, last sync and due flag for every job"""
        vendors = self._vendors_by_kind()
        status = []
        for job in SCHEDULED_JOBS:
            vendor = vendors.get(job.vendor_kind)
            if vendor is None:
                status.append({"job": job.name, "configured": False})
                continue
            enabled = bool(getattr(vendor, job.enabled_column, False))
            schedule_time = getattr(vendor, job.time_column, None)
            frequency = getattr(vendor, job.frequency_column, None) if job.frequency_column else "daily"
            last_sync = getattr(vendor, job.last_sync_column, None)
            status.append({
                "job": job.name,
                "configured": True,
                "vendor": vendor.name,
                "enabled": enabled,
                "time": schedule_time,
                "frequency": frequency,
                "last_sync": last_sync,
                "due": is_sync_due(enabled, schedule_time, frequency, last_sync, now),
            })
        return status

    async def run_due_syncs(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """
        Run every job that is due, one after another

        Returns:
            One entry per job: {job, due, success, message, result}
        """
        runs = []
        for entry in self.get_schedule_status(now):
            if not entry.get("due"):
                runs.append(asdict(JobRun(job=entry["job"], due=False)))
                continue

            logger.info(f"Scheduled sync due: {entry['job']} ({entry['vendor']})")
            try:
                result = await self.runners[entry["job"]]()
                runs.append(asdict(JobRun(
                    job=entry["job"], due=True, success=result.success,
                    message=result.message, result=result.to_dict()
                )))
            except Exception as e:
                logger.error(f"Scheduled sync {entry['job']} failed: {e}")
                runs.append(asdict(JobRun(job=entry["job"], due=True, success=False, message=str(e))))

        ran = sum(1 for r in runs if r["due"])
        logger.info(f"Scheduler pass finished: {ran} of {len(runs)} jobs were due")
        return runs
