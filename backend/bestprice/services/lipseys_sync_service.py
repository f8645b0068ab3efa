"""
Lipsey's Sync Service - catalog feed import

Author: TM3
Date: 2025-10-17
"""
import time
import logging
from typing import Dict, Optional, Any

from bestprice.connectors.lipseys_connector import LipseysConnector, image_url
from bestprice.repositories.product_repository import ProductRepository
from bestprice.services.catalog_import import CatalogImporter, CatalogRecord, parse_price, parse_int
from bestprice.services.vendor_registry import LIPSEYS
from bestprice.services.vendor_sync_base import (
    VendorSyncBase, CatalogSyncResult, LIPSEYS_COLUMNS, validate_schedule_time,
)

logger = logging.getLogger(__name__)


def _text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def catalog_record(item: Dict[str, Any]) -> CatalogRecord:
    """Map one CatalogFeed item; name prefers description1, then description2"""
    return CatalogRecord(
        upc=_text(item.get("upc")),
        name=_text(item.get("description1")) or _text(item.get("description2")),
        brand=_text(item.get("manufacturer")),
        manufacturer_part_number=_text(item.get("manufacturerModelNo")),
        model=_text(item.get("model")),
        caliber=_text(item.get("caliberGauge")),
        category=_text(item.get("type")),
        description=_text(item.get("description2")),
        image_url=image_url(_text(item.get("imageName"))),
        vendor_sku=_text(item.get("itemNo")),
        vendor_cost=parse_price(item.get("price")),
        map_price=parse_price(item.get("retailMap")),
        msrp_price=parse_price(item.get("msrp")),
        quantity=parse_int(item.get("quantity")),
    )


class LipseysSyncService(VendorSyncBase):

    kind = LIPSEYS

    def __init__(self, vendor_repository=None, vault=None,
                 product_repository: Optional[ProductRepository] = None,
                 connector_factory=None):
        super().__init__(vendor_repository, vault)
        self.product_repository = product_repository or ProductRepository()
        self.connector_factory = connector_factory or self._default_connector

    @staticmethod
    def _default_connector(credentials: Dict[str, Any]) -> LipseysConnector:
        return LipseysConnector(
            email=credentials.get("email") or credentials.get("userName"),
            password=credentials.get("password"),
        )

    async def run_catalog_sync(self) -> CatalogSyncResult:
        started = time.time()
        columns = LIPSEYS_COLUMNS

        try:
            vendor = self.get_vendor()
        except LookupError as e:
            return self.failed_result("Lipsey's", str(e), started)

        try:
            if not self.begin(vendor, columns):
                return self.failed_result(vendor.name, "Lipsey's catalog sync already in progress", started)

            logger.info(f"Lipsey's catalog sync started (vendor {vendor.id})")

            connector = self.connector_factory(self.get_credentials(vendor))
            items = await connector.get_catalog_feed()

            importer = CatalogImporter(vendor.id, vendor.name, self.product_repository)
            stats = importer.import_records(catalog_record(item) for item in items)
            stats.total_records = len(items)

            self.complete(vendor, columns, stats)
            message = (
                f"Processed {stats.total_records} items: {stats.records_added} added, "
                f"{stats.records_updated} updated, {stats.records_skipped} skipped, "
                f"{stats.records_failed} failed"
            )
            logger.info(f"Lipsey's catalog sync complete. {message}")
            return self.result_from_stats(vendor.name, stats, started, message)

        except Exception as e:
            logger.error(f"Lipsey's catalog sync failed: {e}")
            self.fail(vendor, columns, str(e))
            return self.failed_result(vendor.name, str(e), started)

    def update_schedule(self, enabled: Optional[bool] = None, time_of_day: Optional[str] = None) -> Dict[str, Any]:
        fields = {}
        if enabled is not None:
            fields["lipseys_catalog_sync_enabled"] = bool(enabled)
        if time_of_day is not None:
            fields["lipseys_catalog_sync_time"] = validate_schedule_time(time_of_day)
        vendor = self.get_vendor()
        updated = self.vendor_repository.update(vendor.id, fields)
        return {
            "enabled": getattr(updated, "lipseys_catalog_sync_enabled", None),
            "time": getattr(updated, "lipseys_catalog_sync_time", None),
        }
