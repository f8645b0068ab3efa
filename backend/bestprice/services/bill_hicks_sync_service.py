"""
Bill Hicks Sync Service - master catalog and inventory from the MicroBiz FTP feeds

Catalog (daily):
- Downloads MicroBiz_Daily_Catalog.csv with the admin FTP credentials
- Imports only lines that changed since the last successful run
- Products follow the record-priority rule; vendor mappings always updated

Inventory (hourly):
- Downloads MicroBiz_Hourly_Inventory.csv
- Bulk upserts vendor_inventory: new SKUs inserted, changed quantities
  updated, unchanged rows skipped

Author: TM3
Date: 2025-10-17
"""
import io
import csv
import time
import asyncio
import logging
from typing import Dict, List, Optional, Any

from bestprice.connectors.bill_hicks_ftp_connector import BillHicksFTPConnector
from bestprice.repositories.product_repository import ProductRepository
from bestprice.repositories.vendor_inventory_repository import VendorInventoryRepository
from bestprice.repositories.credentials_repository import CompanyVendorCredentialsRepository
from bestprice.services.catalog_diff import compute_changed_lines, PreviousFeedStore
from bestprice.services.catalog_import import (
    CatalogImporter, CatalogRecord, SyncStats, parse_price, parse_int
)
from bestprice.services.vendor_registry import BILL_HICKS
from bestprice.services.vendor_sync_base import (
    VendorSyncBase, CatalogSyncResult,
    BILL_HICKS_CATALOG_COLUMNS, BILL_HICKS_INVENTORY_COLUMNS,
    validate_schedule_time,
)

logger = logging.getLogger(__name__)

VENDOR_NAME = "Bill Hicks & Co."
CATALOG_FEED = "catalog"
INVENTORY_FEED = "inventory"


def fix_catalog_header(content: str) -> str:
    """The feed ships the MFG_product header with an unbalanced quote"""
    return content.replace(',MFG_product"', ',"MFG_product"', 1)


def extract_brand(product_name: str) -> str:
    """'BUR 202224' -> 'BUR'"""
    parts = (product_name or "").strip().split()
    return parts[0] if parts else ""


def extract_part_number(product_name: str) -> str:
    """'BUR 202224' -> '202224'; a single token is its own part number"""
    name = (product_name or "").strip()
    parts = name.split()
    return " ".join(parts[1:]) if len(parts) > 1 else name


def parse_catalog_rows(content: str) -> List[Dict[str, str]]:
    reader = csv.DictReader(io.StringIO(content))
    return [
        {(k or "").strip(): (v or "").strip() for k, v in row.items() if k is not None}
        for row in reader
    ]


def catalog_record(row: Dict[str, str]) -> CatalogRecord:
    product_name = row.get("product_name", "")
    short_description = row.get("short_description", "")
    return CatalogRecord(
        upc=row.get("universal_product_code"),
        name=short_description or product_name,
        brand=extract_brand(product_name),
        manufacturer_part_number=extract_part_number(product_name),
        category=row.get("category_description"),
        description=row.get("long_description") or short_description,
        vendor_sku=product_name or None,
        vendor_cost=parse_price(row.get("product_price")),
        msrp_price=parse_price(row.get("msrp")),
    )


def parse_inventory_rows(content: str) -> List[Dict[str, Any]]:
    """Product / UPC / Qty Avail rows; rows without product or UPC dropped"""
    items = []
    for row in csv.DictReader(io.StringIO(content)):
        sku = (row.get("Product") or "").strip()
        upc = (row.get("UPC") or "").strip()
        if not sku or not upc:
            continue
        items.append({
            "vendor_sku": sku,
            "upc": upc,
            "quantity": parse_int(row.get("Qty Avail")) or 0,
        })
    return items


class BillHicksSyncService(VendorSyncBase):
    """Platform-wide Bill Hicks catalog and inventory sync"""

    kind = BILL_HICKS

    def __init__(
        self,
        vendor_repository=None,
        vault=None,
        product_repository: Optional[ProductRepository] = None,
        inventory_repository: Optional[VendorInventoryRepository] = None,
        credentials_repository: Optional[CompanyVendorCredentialsRepository] = None,
        feed_store: Optional[PreviousFeedStore] = None,
        connector_factory=BillHicksFTPConnector
    ):
        super().__init__(vendor_repository, vault)
        self.product_repository = product_repository or ProductRepository()
        self.inventory_repository = inventory_repository or VendorInventoryRepository()
        self.credentials_repository = credentials_repository or CompanyVendorCredentialsRepository()
        self.feed_store = feed_store or PreviousFeedStore()
        self.connector_factory = connector_factory

    # =========================================================================
    # Master catalog
    # =========================================================================

    async def run_catalog_sync(self) -> CatalogSyncResult:
        """
        Download the catalog and import changed lines

        Returns:
            CatalogSyncResult; failures are recorded, never raised
        """
        started = time.time()
        columns = BILL_HICKS_CATALOG_COLUMNS

        try:
            vendor = self.get_vendor()
        except LookupError as e:
            return self.failed_result(VENDOR_NAME, str(e), started)

        try:
            if not self.begin(vendor, columns):
                return self.failed_result(vendor.name, "Master catalog sync already in progress", started)

            logger.info(f"Bill Hicks master catalog sync started (vendor {vendor.id})")

            connector = self.connector_factory(self.get_credentials(vendor))
            content = await asyncio.to_thread(connector.download_catalog)
            content = fix_catalog_header(content)

            diff = compute_changed_lines(content, self.feed_store.load(BILL_HICKS, CATALOG_FEED))
            logger.info(
                f"Catalog diff: {diff.changed_count} changed of {diff.total_lines} lines "
                f"(+{diff.added_lines} / -{diff.removed_lines})"
            )

            if not diff.has_changes:
                total = max(0, diff.total_lines - 1)
                stats = SyncStats(total_records=total, records_skipped=total)
                self.complete(vendor, columns, stats)
                logger.info("Bill Hicks catalog unchanged, nothing to import")
                return self.result_from_stats(
                    vendor.name, stats, started, "No changes detected", changes_detected=False
                )

            rows = parse_catalog_rows(diff.changed_content)
            importer = CatalogImporter(vendor.id, VENDOR_NAME, self.product_repository)
            stats = importer.import_records(catalog_record(row) for row in rows)
            stats.total_records = len(rows)

            self.feed_store.save(BILL_HICKS, CATALOG_FEED, content)
            self.complete(vendor, columns, stats)

            message = (
                f"Processed {stats.total_records} changed records: {stats.records_added} added, "
                f"{stats.records_updated} updated, {stats.records_skipped} skipped, "
                f"{stats.records_failed} failed"
            )
            logger.info(f"Bill Hicks catalog sync complete. {message}")
            return self.result_from_stats(vendor.name, stats, started, message)

        except Exception as e:
            logger.error(f"Bill Hicks catalog sync failed: {e}")
            self.fail(vendor, columns, str(e))
            return self.failed_result(vendor.name, str(e), started)

    # =========================================================================
    # Inventory
    # =========================================================================

    def apply_inventory(self, vendor_id: int, items: List[Dict[str, Any]]) -> SyncStats:
        """Split feed rows into inserts / updates / unchanged and write them in bulk"""
        # One row per SKU; the last occurrence in the feed wins
        quantities = {item["vendor_sku"]: item["quantity"] for item in items}
        if len(quantities) < len(items):
            logger.warning(f"Inventory feed repeats {len(items) - len(quantities)} SKU rows, keeping the last of each")

        stats = SyncStats(total_records=len(quantities))
        existing = self.inventory_repository.find_quantities(vendor_id)

        inserts = []
        updates = []
        for vendor_sku, quantity in quantities.items():
            current = existing.get(vendor_sku)
            if current is None:
                inserts.append((vendor_sku, quantity))
            elif current["quantity_available"] != quantity:
                updates.append((current["id"], quantity))
            else:
                stats.records_skipped += 1

        self.inventory_repository.bulk_apply(vendor_id, inserts, updates)
        stats.records_added = len(inserts)
        stats.records_updated = len(updates)
        return stats

    async def run_inventory_sync(self) -> CatalogSyncResult:
        started = time.time()
        columns = BILL_HICKS_INVENTORY_COLUMNS

        try:
            vendor = self.get_vendor()
        except LookupError as e:
            return self.failed_result(VENDOR_NAME, str(e), started)

        try:
            if not self.begin(vendor, columns):
                return self.failed_result(vendor.name, "Inventory sync already in progress", started)

            logger.info(f"Bill Hicks inventory sync started (vendor {vendor.id})")

            connector = self.connector_factory(self.get_credentials(vendor))
            content = await asyncio.to_thread(connector.download_inventory)
            items = parse_inventory_rows(content)
            stats = self.apply_inventory(vendor.id, items)

            self.feed_store.save(BILL_HICKS, INVENTORY_FEED, content)
            self.complete(vendor, columns, stats)

            message = (
                f"{stats.total_records} inventory rows: {stats.records_added} inserted, "
                f"{stats.records_updated} updated, {stats.records_skipped} unchanged"
            )
            logger.info(f"Bill Hicks inventory sync complete. {message}")
            return self.result_from_stats(vendor.name, stats, started, message)

        except Exception as e:
            logger.error(f"Bill Hicks inventory sync failed: {e}")
            self.fail(vendor, columns, str(e))
            return self.failed_result(vendor.name, str(e), started)

    # =========================================================================
    # Admin controls
    # =========================================================================

    def clear_catalog_error(self) -> str:
        return self.clear_error(BILL_HICKS_CATALOG_COLUMNS)

    def clear_inventory_error(self) -> str:
        return self.clear_error(BILL_HICKS_INVENTORY_COLUMNS)

    def update_schedule(
        self,
        catalog_enabled: Optional[bool] = None,
        catalog_time: Optional[str] = None,
        inventory_enabled: Optional[bool] = None,
        inventory_time: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Raises:
            ValueError: a time is not HH:MM
        """
        fields = {}
        if catalog_enabled is not None:
            fields["bill_hicks_master_catalog_sync_enabled"] = catalog_enabled
        if catalog_time is not None:
            fields["bill_hicks_master_catalog_sync_time"] = validate_schedule_time(catalog_time)
        if inventory_enabled is not None:
            fields["bill_hicks_inventory_sync_enabled"] = inventory_enabled
        if inventory_time is not None:
            fields["bill_hicks_inventory_sync_time"] = validate_schedule_time(inventory_time)

        vendor = self.get_vendor()
        updated = self.vendor_repository.update(vendor.id, fields)
        return {
            "catalog_enabled": getattr(updated, "bill_hicks_master_catalog_sync_enabled", None),
            "catalog_time": getattr(updated, "bill_hicks_master_catalog_sync_time", None),
            "inventory_enabled": getattr(updated, "bill_hicks_inventory_sync_enabled", None),
            "inventory_time": getattr(updated, "bill_hicks_inventory_sync_time", None),
        }

    # =========================================================================
    # Company level
    # =========================================================================

    def get_company_stats(self, company_id: int) -> Dict[str, Any]:
        """Catalog size plus the company's own credential and sync status"""
        vendor = self.get_vendor()
        counts = self.product_repository.count_by_vendor(vendor.id, VENDOR_NAME)
        record = self.credentials_repository.find(company_id, vendor.id)

        return {
            "vendor_id": vendor.id,
            "catalog_products": counts["sourced_products"],
            "mapped_skus": counts["mapped_skus"],
            "master_catalog_last_sync": getattr(vendor, "bill_hicks_master_catalog_last_sync", None),
            "master_catalog_status": getattr(vendor, "bill_hicks_master_catalog_sync_status", None),
            "inventory_last_sync": getattr(vendor, "bill_hicks_last_inventory_sync", None),
            "credentials_configured": bool(record and record.credentials),
            "connection_status": record.connection_status if record else "not_configured",
            "last_connection_test": record.last_connection_test if record else None,
            "is_enabled": record.is_enabled if record else False,
        }

    async def test_company_connection(self, company_id: int) -> Dict[str, Any]:
        vendor = self.get_vendor()
        return await self.vault.test_connection(vendor.id, "store", company_id)
