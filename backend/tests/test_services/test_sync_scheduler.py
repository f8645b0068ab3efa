"""
Unit tests for schedule evaluation and the due-sync runner

2025-10-17 is a Friday, 2025-10-18 a Saturday, 2025-10-20 a Monday.

Author: TM3
Date: 2025-10-17
"""
import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock, AsyncMock

from bestprice.domain.vendor import SupportedVendor
from bestprice.services.sync_scheduler import is_sync_due, SyncScheduler, SCHEDULED_JOBS
from bestprice.services.vendor_sync_base import CatalogSyncResult


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


FRIDAY_NOON = utc(2025, 10, 17, 12, 0)


class TestIsSyncDue:

    def test_disabled_is_never_due(self):
        assert is_sync_due(False, "02:00", "daily", None, FRIDAY_NOON) is False

    def test_invalid_time_is_never_due(self):
        assert is_sync_due(True, "2pm", "daily", None, FRIDAY_NOON) is False
        assert is_sync_due(True, None, "daily", None, FRIDAY_NOON) is False

    def test_due_after_scheduled_time_when_never_synced(self):
        assert is_sync_due(True, "02:00", "daily", None, FRIDAY_NOON) is True

    def test_not_due_before_scheduled_time(self):
        assert is_sync_due(True, "14:00", "daily", None, FRIDAY_NOON) is False

    def test_not_due_when_already_synced_after_schedule(self):
        last = utc(2025, 10, 17, 2, 5)
        assert is_sync_due(True, "02:00", "daily", last, FRIDAY_NOON) is False

    def test_due_when_last_sync_was_yesterday(self):
        last = FRIDAY_NOON - timedelta(days=1)
        assert is_sync_due(True, "02:00", "daily", last, FRIDAY_NOON) is True

    def test_naive_last_sync_is_treated_as_utc(self):
        assert is_sync_due(True, "02:00", "daily", datetime(2025, 10, 17, 3, 0), FRIDAY_NOON) is False

    def test_weekdays_skip_weekend(self):
        saturday = utc(2025, 10, 18, 12, 0)
        assert is_sync_due(True, "02:00", "weekdays", None, saturday) is False
        assert is_sync_due(True, "02:00", "weekdays", None, FRIDAY_NOON) is True

    def test_weekly_runs_on_monday_only(self):
        monday = utc(2025, 10, 20, 12, 0)
        assert is_sync_due(True, "02:00", "weekly", None, FRIDAY_NOON) is False
        assert is_sync_due(True, "02:00", "weekly", None, monday) is True


def _result(success=True, message="ok"):
    return CatalogSyncResult(success=success, message=message, vendor="v")


@pytest.fixture
def vendors():
    return [
        SupportedVendor(
            id=4, name="Bill Hicks & Co.",
            bill_hicks_master_catalog_sync_enabled=True,
            bill_hicks_master_catalog_sync_time="02:00",
            bill_hicks_master_catalog_last_sync=None,
            bill_hicks_inventory_sync_enabled=False,
            bill_hicks_inventory_sync_time="03:00",
        ),
        SupportedVendor(
            id=2, name="Chattanooga Shooting Supplies",
            chattanooga_schedule_enabled=True,
            chattanooga_schedule_time="15:00",
            chattanooga_schedule_frequency="daily",
        ),
    ]


@pytest.fixture
def runners():
    return {job.name: AsyncMock(return_value=_result()) for job in SCHEDULED_JOBS}


@pytest.fixture
def scheduler(vendors, runners):
    repo = MagicMock()
    repo.find_all.return_value = vendors
    return SyncScheduler(vendor_repository=repo, runners=runners)


class TestSyncScheduler:

    def test_schedule_status(self, scheduler):
        status = {entry["job"]: entry for entry in scheduler.get_schedule_status(FRIDAY_NOON)}

        assert status["bill_hicks_catalog"]["due"] is True
        assert status["bill_hicks_inventory"]["due"] is False
        assert status["chattanooga_catalog"]["due"] is False
        assert status["lipseys_catalog"] == {"job": "lipseys_catalog", "configured": False}

    @pytest.mark.asyncio
    async def test_runs_only_due_jobs(self, scheduler, runners):
        runs = await scheduler.run_due_syncs(FRIDAY_NOON)

        runners["bill_hicks_catalog"].assert_awaited_once()
        runners["chattanooga_catalog"].assert_not_awaited()
        due = [r for r in runs if r["due"]]
        assert len(due) == 1
        assert due[0]["success"] is True
        assert due[0]["result"]["message"] == "ok"

    @pytest.mark.asyncio
    async def test_runner_exception_is_reported(self, scheduler, runners):
        runners["bill_hicks_catalog"].side_effect = RuntimeError("boom")

        runs = await scheduler.run_due_syncs(FRIDAY_NOON)

        entry = next(r for r in runs if r["job"] == "bill_hicks_catalog")
        assert entry["success"] is False
        assert entry["message"] == "boom"
