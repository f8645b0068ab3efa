"""
Sports South Sync Service - DailyItemUpdate import

Full sync asks for everything changed since 1/1/1990; incremental sync asks
for changes since the last successful catalog sync and falls back to a full
sync when there has never been one.

Author: TM3
Date: 2025-10-17
"""
import time
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Any

from bestprice.connectors.sports_south_connector import SportsSouthConnector
from bestprice.repositories.product_repository import ProductRepository
from bestprice.services.catalog_import import CatalogImporter, CatalogRecord, parse_price, parse_int
from bestprice.services.vendor_registry import SPORTS_SOUTH
from bestprice.services.vendor_sync_base import (
    VendorSyncBase, CatalogSyncResult, SPORTS_SOUTH_COLUMNS,
    validate_schedule_time, validate_frequency,
)

logger = logging.getLogger(__name__)


def item_record(row: Dict[str, str], manufacturers: Optional[Dict[str, str]] = None) -> CatalogRecord:
    """
    Map a Table row

    IMFGNO is a manufacturer number; it becomes the brand only when a
    manufacturer name lookup is supplied.
    """
    manufacturers = manufacturers or {}
    return CatalogRecord(
        upc=row.get("ITUPC"),
        name=row.get("IDESC"),
        brand=manufacturers.get((row.get("IMFGNO") or "").strip()),
        manufacturer_part_number=row.get("MFGINO"),
        category=row.get("CATID"),
        vendor_sku=(row.get("ITEMNO") or "").strip() or None,
        vendor_cost=parse_price(row.get("PRC1")),
        msrp_price=parse_price(row.get("MFPRC")),
        quantity=parse_int(row.get("QTYOH")),
    )


class SportsSouthSyncService(VendorSyncBase):

    kind = SPORTS_SOUTH

    def __init__(self, vendor_repository=None, vault=None,
                 product_repository: Optional[ProductRepository] = None,
                 connector_factory=None):
        super().__init__(vendor_repository, vault)
        self.product_repository = product_repository or ProductRepository()
        self.connector_factory = connector_factory or self._default_connector

    @staticmethod
    def _default_connector(credentials: Dict[str, Any]) -> SportsSouthConnector:
        return SportsSouthConnector(
            user_name=credentials.get("userName") or credentials.get("user_name"),
            customer_number=credentials.get("customerNumber") or credentials.get("customer_number"),
            password=credentials.get("password"),
            source=credentials.get("source"),
        )

    async def run_full_sync(self) -> CatalogSyncResult:
        return await self._run(full=True)

    async def run_incremental_sync(self) -> CatalogSyncResult:
        return await self._run(full=False)

    async def _run(self, full: bool) -> CatalogSyncResult:
        started = time.time()
        columns = SPORTS_SOUTH_COLUMNS

        try:
            vendor = self.get_vendor()
        except LookupError as e:
            return self.failed_result("Sports South", str(e), started)

        since = None if full else vendor.last_catalog_sync
        if since is None and not full:
            logger.info("Sports South has no previous successful sync, running full catalog")
            full = True

        try:
            if not self.begin(vendor, columns):
                return self.failed_result(vendor.name, "Sports South sync already in progress", started)

            mode = "full" if full else f"incremental since {since:%m/%d/%Y}"
            logger.info(f"Sports South catalog sync started ({mode})")

            connector = self.connector_factory(self.get_credentials(vendor))
            rows = await asyncio.to_thread(connector.get_daily_item_update, since)

            importer = CatalogImporter(vendor.id, vendor.name, self.product_repository)
            stats = importer.import_records(item_record(row) for row in rows)
            stats.total_records = len(rows)

            extra = {"sports_south_last_full_sync": datetime.now(timezone.utc)} if full else None
            self.complete(vendor, columns, stats, extra=extra)

            message = (
                f"{mode.capitalize()} sync processed {stats.total_records} items: "
                f"{stats.records_added} added, {stats.records_updated} updated, "
                f"{stats.records_skipped} skipped, {stats.records_failed} failed"
            )
            logger.info(f"Sports South sync complete. {message}")
            return self.result_from_stats(vendor.name, stats, started, message)

        except Exception as e:
            logger.error(f"Sports South sync failed: {e}")
            self.fail(vendor, columns, str(e))
            return self.failed_result(vendor.name, str(e), started)

    def get_catalog_info(self) -> Dict[str, Any]:
        vendor = self.get_vendor()
        counts = self.product_repository.count_by_vendor(vendor.id, vendor.name)
        return {
            "vendor_id": vendor.id,
            "vendor_name": vendor.name,
            "catalog_products": counts["sourced_products"],
            "mapped_skus": counts["mapped_skus"],
            "last_sync": vendor.last_catalog_sync,
            "last_full_sync": getattr(vendor, "sports_south_last_full_sync", None),
            "sync_status": vendor.catalog_sync_status,
            "sync_error": vendor.catalog_sync_error,
            "schedule": self._schedule(vendor),
            "last_counts": {
                "added": getattr(vendor, "last_sync_new_records", 0),
                "updated": getattr(vendor, "last_sync_records_updated", 0),
                "skipped": getattr(vendor, "last_sync_records_skipped", 0),
                "failed": getattr(vendor, "last_sync_records_failed", 0),
            },
        }

    def set_schedule_enabled(self, enabled: bool) -> Dict[str, Any]:
        vendor = self.get_vendor()
        return self._schedule(self.vendor_repository.update(vendor.id, {"sports_south_schedule_enabled": bool(enabled)}))

    def update_schedule(self, time_of_day: Optional[str] = None, frequency: Optional[str] = None) -> Dict[str, Any]:
        fields = {}
        if time_of_day is not None:
            fields["sports_south_schedule_time"] = validate_schedule_time(time_of_day)
        if frequency is not None:
            fields["sports_south_schedule_frequency"] = validate_frequency(frequency)
        vendor = self.get_vendor()
        return self._schedule(self.vendor_repository.update(vendor.id, fields))

    @staticmethod
    def _schedule(vendor) -> Dict[str, Any]:
        return {
            "enabled": getattr(vendor, "sports_south_schedule_enabled", None),
            "time": getattr(vendor, "sports_south_schedule_time", None),
            "frequency": getattr(vendor, "sports_south_schedule_frequency", None),
        }
