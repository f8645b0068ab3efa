"""
Chattanooga Sync Service - product feed import

The product feed is a full CSV export. Its SHA-256 is kept in
supported_vendors.chattanooga_csv_hash; an identical feed is not imported
again and every record is counted as skipped.

Author: TM3
Date: 2025-10-17
"""
import io
import csv
import time
import hashlib
import logging
from typing import Dict, List, Optional, Any

from bestprice.connectors.chattanooga_connector import ChattanoogaConnector
from bestprice.repositories.product_repository import ProductRepository
from bestprice.services.catalog_import import (
    CatalogImporter, CatalogRecord, SyncStats, parse_price, parse_int
)
from bestprice.services.vendor_registry import CHATTANOOGA
from bestprice.services.vendor_sync_base import (
    VendorSyncBase, CatalogSyncResult, CHATTANOOGA_COLUMNS,
    validate_schedule_time, validate_frequency,
)

logger = logging.getLogger(__name__)


def feed_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def parse_feed(content: str) -> List[Dict[str, str]]:
    reader = csv.DictReader(io.StringIO(content))
    return [{(k or "").strip(): (v or "").strip() for k, v in row.items() if k is not None} for row in reader]


def feed_record(row: Dict[str, str]) -> CatalogRecord:
    return CatalogRecord(
        upc=row.get("UPC"),
        name=row.get("Name"),
        brand=row.get("Manufacturer"),
        manufacturer_part_number=row.get("Manufacturer Item Number"),
        category=row.get("Category"),
        vendor_sku=row.get("SKU") or None,
        vendor_cost=parse_price(row.get("Price")),
        map_price=parse_price(row.get("MAP")),
        msrp_price=parse_price(row.get("MSRP")),
        quantity=parse_int(row.get("Qty On Hand")),
    )


class ChattanoogaSyncService(VendorSyncBase):

    kind = CHATTANOOGA

    def __init__(self, vendor_repository=None, vault=None,
                 product_repository: Optional[ProductRepository] = None,
                 connector_factory=None):
        super().__init__(vendor_repository, vault)
        self.product_repository = product_repository or ProductRepository()
        self.connector_factory = connector_factory or self._default_connector

    @staticmethod
    def _default_connector(credentials: Dict[str, Any]) -> ChattanoogaConnector:
        return ChattanoogaConnector(
            sid=credentials.get("sid") or credentials.get("SID"),
            token=credentials.get("token") or credentials.get("Token"),
        )

    async def run_sync(self) -> CatalogSyncResult:
        started = time.time()
        columns = CHATTANOOGA_COLUMNS

        try:
            vendor = self.get_vendor()
        except LookupError as e:
            return self.failed_result("Chattanooga Shooting Supplies", str(e), started)

        try:
            if not self.begin(vendor, columns):
                return self.failed_result(vendor.name, "Chattanooga sync already in progress", started)

            logger.info(f"Chattanooga catalog sync started (vendor {vendor.id})")

            connector = self.connector_factory(self.get_credentials(vendor))
            content = await connector.get_product_feed()
            rows = parse_feed(content)
            digest = feed_hash(content)

            if digest == getattr(vendor, "chattanooga_csv_hash", None):
                stats = SyncStats(total_records=len(rows), records_skipped=len(rows))
                self.complete(vendor, columns, stats)
                logger.info("Chattanooga feed unchanged since last sync")
                return self.result_from_stats(vendor.name, stats, started, "No changes detected",
                                              changes_detected=False)

            importer = CatalogImporter(vendor.id, vendor.name, self.product_repository)
            stats = importer.import_records(feed_record(row) for row in rows)
            stats.total_records = len(rows)

            self.complete(vendor, columns, stats, extra={"chattanooga_csv_hash": digest})
            message = (
                f"Processed {stats.total_records} records: {stats.records_added} added, "
                f"{stats.records_updated} updated, {stats.records_skipped} skipped, "
                f"{stats.records_failed} failed"
            )
            logger.info(f"Chattanooga sync complete. {message}")
            return self.result_from_stats(vendor.name, stats, started, message)

        except Exception as e:
            logger.error(f"Chattanooga sync failed: {e}")
            self.fail(vendor, columns, str(e))
            return self.failed_result(vendor.name, str(e), started)

    def clear_sync_error(self) -> str:
        return self.clear_error(CHATTANOOGA_COLUMNS)

    def set_schedule_enabled(self, enabled: bool) -> Dict[str, Any]:
        vendor = self.get_vendor()
        updated = self.vendor_repository.update(vendor.id, {"chattanooga_schedule_enabled": bool(enabled)})
        return self._schedule(updated)

    def update_schedule(self, time_of_day: Optional[str] = None, frequency: Optional[str] = None) -> Dict[str, Any]:
        fields = {}
        if time_of_day is not None:
            fields["chattanooga_schedule_time"] = validate_schedule_time(time_of_day)
        if frequency is not None:
            fields["chattanooga_schedule_frequency"] = validate_frequency(frequency)
        vendor = self.get_vendor()
        return self._schedule(self.vendor_repository.update(vendor.id, fields))

    @staticmethod
    def _schedule(vendor) -> Dict[str, Any]:
        return {
            "enabled": getattr(vendor, "chattanooga_schedule_enabled", None),
            "time": getattr(vendor, "chattanooga_schedule_time", None),
            "frequency": getattr(vendor, "chattanooga_schedule_frequency", None),
        }
