"""
Catalog Import - shared rule for writing vendor records into the master catalog

For every record:
- empty UPC or UPC "0": skipped
- UPC unknown: product created with source = vendor name
- UPC known: product updated only when the vendor's record priority beats
  the product's current source and at least one mapped field differs
- the vendor mapping (SKU, cost, MAP, MSRP, quantity) is upserted whenever
  the record has a vendor SKU, regardless of priority

Author: TM3
Date: 2025-10-17
"""
import logging
from dataclasses import dataclass, field, asdict
from decimal import Decimal, InvalidOperation
from typing import Optional, Iterable, Dict, Any

from bestprice.repositories.product_repository import ProductRepository
from bestprice.services.vendor_priority import should_replace_product_data, preload_vendor_priorities

logger = logging.getLogger(__name__)

ADDED = "added"
UPDATED = "updated"
SKIPPED = "skipped"

PRODUCT_FIELDS = (
    "name", "brand", "manufacturer_part_number", "model", "caliber",
    "category", "description", "image_url",
)


def parse_price(value) -> Optional[Decimal]:
    """'$1,299.99' -> Decimal('1299.99'); blank or invalid -> None"""
    if value is None:
        return None
    text = str(value).strip().replace("$", "").replace(",", "")
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def parse_int(value) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class CatalogRecord:
    """One vendor feed record mapped onto product fields"""
    upc: Optional[str]
    name: Optional[str] = None
    brand: Optional[str] = None
    manufacturer_part_number: Optional[str] = None
    model: Optional[str] = None
    caliber: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    vendor_sku: Optional[str] = None
    vendor_cost: Optional[Decimal] = None
    map_price: Optional[Decimal] = None
    msrp_price: Optional[Decimal] = None
    quantity: Optional[int] = None

    def product_fields(self) -> Dict[str, Any]:
        """Mapped product values; empty values are not written"""
        values = {name: _clean(getattr(self, name)) for name in PRODUCT_FIELDS}
        return {k: v for k, v in values.items() if v is not None}


@dataclass
class SyncStats:
    total_records: int = 0
    records_added: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    records_failed: int = 0

    def count(self, outcome: str):
        if outcome == ADDED:
            self.records_added += 1
        elif outcome == UPDATED:
            self.records_updated += 1
        else:
            self.records_skipped += 1

    def to_dict(self) -> dict:
        return asdict(self)


def fields_identical(existing: Dict[str, Any], mapped: Dict[str, Any]) -> bool:
    return all(
        str(existing.get(key) or "") == str(value or "")
        for key, value in mapped.items()
    )


class CatalogImporter:
    """Applies the catalog import rule for one vendor"""

    def __init__(self, vendor_id: int, vendor_name: str, product_repository: Optional[ProductRepository] = None):
        self.vendor_id = vendor_id
        self.vendor_name = vendor_name
        self.product_repository = product_repository or ProductRepository()

    def import_record(self, record: CatalogRecord) -> str:
        """
        Returns:
            "added", "updated" or "skipped"
        """
        upc = _clean(record.upc)
        if not upc or upc == "0":
            return SKIPPED

        mapped = record.product_fields()
        existing = self.product_repository.find_by_upc(upc)

        if not existing:
            if not mapped.get("name"):
                mapped["name"] = record.vendor_sku or upc
            product_id = self.product_repository.create(dict(mapped, upc=upc, source=self.vendor_name))
            outcome = ADDED
        else:
            product_id = existing["id"]
            if not should_replace_product_data(self.vendor_name, existing.get("source")):
                outcome = SKIPPED
            elif fields_identical(existing, dict(mapped, source=self.vendor_name)):
                outcome = SKIPPED
            else:
                self.product_repository.update(product_id, dict(mapped, source=self.vendor_name))
                outcome = UPDATED

        if record.vendor_sku:
            self.product_repository.upsert_vendor_mapping(
                self.vendor_id,
                record.vendor_sku,
                product_id,
                vendor_cost=record.vendor_cost,
                map_price=record.map_price,
                msrp_price=record.msrp_price,
                quantity_available=record.quantity,
            )

        return outcome

    def import_records(self, records: Iterable[CatalogRecord], stats: Optional[SyncStats] = None) -> SyncStats:
        """Import records, counting failures instead of stopping"""
        stats = stats or SyncStats()
        preload_vendor_priorities([self.vendor_name])

        for record in records:
            try:
                stats.count(self.import_record(record))
            except Exception as e:
                stats.records_failed += 1
                logger.error(f"{self.vendor_name}: failed to import UPC {record.upc}: {e}")

        return stats
