"""
Vendor Sync Base - status bookkeeping shared by the vendor catalog syncs

Every sync claims its status column (in_progress), runs, and then writes
success or error together with the record counts into the vendor's own
columns on supported_vendors. Failures are never raised to the caller.

Author: TM3
Date: 2025-10-17
"""
import re
import time
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

from bestprice.domain.vendor import SupportedVendor
from bestprice.repositories.supported_vendor_repository import SupportedVendorRepository
from bestprice.services.catalog_import import SyncStats
from bestprice.services.credential_vault_service import CredentialVaultService
from bestprice.services.vendor_registry import vendor_kind

logger = logging.getLogger(__name__)


# ============================================================================
# Response Models (dataclasses for type safety)
# ============================================================================

@dataclass
class SyncColumns:
    """Names of the supported_vendors columns one sync writes"""
    status: str
    last_sync: str
    error: str
    added: str
    updated: str
    skipped: str
    failed: str
    total: Optional[str] = None


@dataclass
class CatalogSyncResult:
    success: bool
    message: str
    vendor: str
    total_records: int = 0
    records_added: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    records_failed: int = 0
    changes_detected: bool = True
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _counter_columns(prefix: str) -> Dict[str, str]:
    return {
        "added": f"{prefix}_records_added",
        "updated": f"{prefix}_records_updated",
        "skipped": f"{prefix}_records_skipped",
        "failed": f"{prefix}_records_failed",
        "total": f"{prefix}_total_records",
    }


BILL_HICKS_CATALOG_COLUMNS = SyncColumns(
    status="bill_hicks_master_catalog_sync_status",
    last_sync="bill_hicks_master_catalog_last_sync",
    error="bill_hicks_master_catalog_sync_error",
    **_counter_columns("bill_hicks_master_catalog"),
)
BILL_HICKS_INVENTORY_COLUMNS = SyncColumns(
    status="bill_hicks_inventory_sync_status",
    last_sync="bill_hicks_last_inventory_sync",
    error="bill_hicks_inventory_sync_error",
    **_counter_columns("bill_hicks_inventory"),
)
CHATTANOOGA_COLUMNS = SyncColumns(
    status="chattanooga_sync_status",
    last_sync="chattanooga_last_sync",
    error="chattanooga_sync_error",
    **_counter_columns("chattanooga"),
)
LIPSEYS_COLUMNS = SyncColumns(
    status="lipseys_catalog_sync_status",
    last_sync="lipseys_last_catalog_sync",
    error="lipseys_catalog_sync_error",
    **_counter_columns("lipseys"),
)
SPORTS_SOUTH_COLUMNS = SyncColumns(
    status="catalog_sync_status",
    last_sync="last_catalog_sync",
    error="catalog_sync_error",
    added="last_sync_new_records",
    updated="last_sync_records_updated",
    skipped="last_sync_records_skipped",
    failed="last_sync_records_failed",
)


class VendorSyncBase:
    """Common plumbing; subclasses set `kind` and implement the run methods"""

    kind: str = ""

    def __init__(
        self,
        vendor_repository: Optional[SupportedVendorRepository] = None,
        vault: Optional[CredentialVaultService] = None
    ):
        self.vendor_repository = vendor_repository or SupportedVendorRepository()
        self.vault = vault or CredentialVaultService(vendor_repository=self.vendor_repository)

    def get_vendor(self) -> SupportedVendor:
        """
        Raises:
            LookupError: the vendor row is not configured
        """
        for vendor in self.vendor_repository.find_all():
            if vendor_kind(vendor) == self.kind:
                return vendor
        raise LookupError(f"Vendor '{self.kind}' is not configured in supported vendors")

    def get_credentials(self, vendor: SupportedVendor) -> Dict[str, Any]:
        """
        Raises:
            ValueError: admin credentials missing or still placeholders
        """
        credentials = self.vault.get_admin_credentials(vendor.id)
        if not credentials:
            raise ValueError(f"{vendor.name} admin credentials are not configured")
        return credentials

    # =========================================================================
    # Status bookkeeping
    # =========================================================================

    def begin(self, vendor: SupportedVendor, columns: SyncColumns) -> bool:
        claimed = self.vendor_repository.claim_sync(vendor.id, columns.status)
        if claimed:
            self.vendor_repository.update(vendor.id, {columns.error: None})
        else:
            logger.warning(f"{vendor.name}: {columns.status} already in progress, refusing to start")
        return claimed

    def complete(self, vendor: SupportedVendor, columns: SyncColumns, stats: SyncStats,
                 extra: Optional[Dict[str, Any]] = None):
        fields = {
            columns.status: "success",
            columns.last_sync: datetime.now(timezone.utc),
            columns.error: None,
            columns.added: stats.records_added,
            columns.updated: stats.records_updated,
            columns.skipped: stats.records_skipped,
            columns.failed: stats.records_failed,
        }
        if columns.total:
            fields[columns.total] = stats.total_records
        fields.update(extra or {})
        self.vendor_repository.update(vendor.id, fields)

    def fail(self, vendor: SupportedVendor, columns: SyncColumns, message: str):
        try:
            self.vendor_repository.update(vendor.id, {columns.status: "error", columns.error: message})
        except Exception as e:
            logger.error(f"{vendor.name}: could not record sync failure: {e}")

    def clear_error(self, columns: SyncColumns) -> str:
        """Reset an error status to success (synced before) or never_synced"""
        vendor = self.get_vendor()
        new_status = "success" if getattr(vendor, columns.last_sync, None) else "never_synced"
        self.vendor_repository.update(vendor.id, {columns.status: new_status, columns.error: None})
        logger.info(f"{vendor.name}: cleared {columns.error}, status now {new_status}")
        return new_status

    # =========================================================================
    # Result helpers
    # =========================================================================

    @staticmethod
    def result_from_stats(vendor_name: str, stats: SyncStats, started: float, message: str,
                          changes_detected: bool = True, errors: Optional[List[str]] = None) -> CatalogSyncResult:
        return CatalogSyncResult(
            success=True,
            message=message,
            vendor=vendor_name,
            changes_detected=changes_detected,
            errors=errors or [],
            duration_seconds=round(time.time() - started, 2),
            **stats.to_dict()
        )

    @staticmethod
    def failed_result(vendor_name: str, message: str, started: float) -> CatalogSyncResult:
        return CatalogSyncResult(
            success=False,
            message=message,
            vendor=vendor_name,
            errors=[message],
            duration_seconds=round(time.time() - started, 2),
        )


# ============================================================================
# Schedule validation
# ============================================================================

SCHEDULE_FREQUENCIES = ("daily", "weekdays", "weekly")
SCHEDULE_TIME = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def validate_schedule_time(value: str) -> str:
    """
    Raises:
        ValueError: value is not HH:MM (24h)
    """
    value = (value or "").strip()
    if not SCHEDULE_TIME.match(value):
        raise ValueError("Invalid time format. Use HH:MM (24-hour)")
    return value


def validate_frequency(value: str) -> str:
    value = (value or "").strip().lower()
    if value not in SCHEDULE_FREQUENCIES:
        raise ValueError(f"Invalid frequency. Must be one of: {', '.join(SCHEDULE_FREQUENCIES)}")
    return value
