"""
Unit tests for BillHicksSyncService

FTP downloads, repositories and the previous-feed store are replaced with
mocks; feeds are small inline CSVs.

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock, patch

from bestprice.domain.vendor import SupportedVendor
from bestprice.services.bill_hicks_sync_service import (
    BillHicksSyncService,
    fix_catalog_header,
    extract_brand,
    extract_part_number,
    parse_catalog_rows,
    catalog_record,
    parse_inventory_rows,
)
from bestprice.services.catalog_diff import PreviousFeedStore

CATALOG = (
    'universal_product_code,product_name,short_description,long_description,'
    'category_description,product_price,msrp,MFG_product"\n'
    '012345678905,BUR 202224,Burris Scope,Fullfield 3-9x40,OPTICS,$199.99,$249.00,x\n'
    '036000291452,HOR 80403,Hornady 9mm,,AMMO,15.50,19.99,x\n'
)

INVENTORY = "Product,UPC,Qty Avail\nBUR 202224,012345678905,4\nHOR 80403,036000291452,0\n,1111,9\n"


@pytest.fixture(autouse=True)
def no_priority_lookups():
    with patch("bestprice.services.catalog_import.preload_vendor_priorities"):
        yield


@pytest.fixture
def vendor():
    return SupportedVendor(id=4, name="Bill Hicks & Co.", vendor_short_code="bill_hicks")


@pytest.fixture
def connector():
    conn = MagicMock()
    conn.download_catalog.return_value = CATALOG
    conn.download_inventory.return_value = INVENTORY
    return conn


@pytest.fixture
def service(vendor, connector, tmp_path):
    vendor_repository = MagicMock()
    vendor_repository.find_all.return_value = [vendor]
    vendor_repository.claim_sync.return_value = True

    vault = MagicMock()
    vault.get_admin_credentials.return_value = {"ftpServer": "ftp.example.com", "ftpUsername": "u", "ftpPassword": "p"}

    products = MagicMock()
    products.find_by_upc.return_value = None
    products.create.side_effect = [1, 2, 3, 4]

    inventory = MagicMock()

    return BillHicksSyncService(
        vendor_repository=vendor_repository,
        vault=vault,
        product_repository=products,
        inventory_repository=inventory,
        credentials_repository=MagicMock(),
        feed_store=PreviousFeedStore(str(tmp_path)),
        connector_factory=lambda credentials: connector,
    )


def _last_update(service):
    return service.vendor_repository.update.call_args_list[-1][0][1]


class TestFeedParsing:

    def test_fix_catalog_header(self):
        assert fix_catalog_header('a,MFG_product"\n1,2') == 'a,"MFG_product"\n1,2'

    def test_brand_and_part_number(self):
        assert extract_brand("BUR 202224") == "BUR"
        assert extract_part_number("BUR 202224") == "202224"
        assert extract_part_number("SINGLE") == "SINGLE"
        assert extract_brand("") == ""

    def test_catalog_record_mapping(self):
        rows = parse_catalog_rows(fix_catalog_header(CATALOG))
        record = catalog_record(rows[0])

        assert record.upc == "012345678905"
        assert record.name == "Burris Scope"
        assert record.brand == "BUR"
        assert record.manufacturer_part_number == "202224"
        assert record.vendor_sku == "BUR 202224"
        assert str(record.vendor_cost) == "199.99"
        assert str(record.msrp_price) == "249.00"

    def test_description_falls_back_to_short_description(self):
        rows = parse_catalog_rows(fix_catalog_header(CATALOG))
        assert catalog_record(rows[1]).description == "Hornady 9mm"

    def test_inventory_rows_without_product_are_dropped(self):
        items = parse_inventory_rows(INVENTORY)
        assert items == [
            {"vendor_sku": "BUR 202224", "upc": "012345678905", "quantity": 4},
            {"vendor_sku": "HOR 80403", "upc": "036000291452", "quantity": 0},
        ]


class TestCatalogSync:

    @pytest.mark.asyncio
    async def test_first_run_imports_every_line(self, service):
        result = await service.run_catalog_sync()

        assert result.success is True
        assert result.records_added == 2
        assert result.total_records == 2
        fields = _last_update(service)
        assert fields["bill_hicks_master_catalog_sync_status"] == "success"
        assert fields["bill_hicks_master_catalog_records_added"] == 2
        assert service.feed_store.load("bill_hicks", "catalog") is not None

    @pytest.mark.asyncio
    async def test_unchanged_feed_skips_everything(self, service):
        service.feed_store.save("bill_hicks", "catalog", fix_catalog_header(CATALOG))

        result = await service.run_catalog_sync()

        assert result.success is True
        assert result.changes_detected is False
        assert result.records_skipped == 2
        service.product_repository.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_sync_in_progress_is_refused(self, service):
        service.vendor_repository.claim_sync.return_value = False

        result = await service.run_catalog_sync()

        assert result.success is False
        assert "already in progress" in result.message
        service.vendor_repository.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_credentials_records_error(self, service):
        service.vault.get_admin_credentials.return_value = None

        result = await service.run_catalog_sync()

        assert result.success is False
        fields = _last_update(service)
        assert fields["bill_hicks_master_catalog_sync_status"] == "error"
        assert "credentials" in fields["bill_hicks_master_catalog_sync_error"]

    @pytest.mark.asyncio
    async def test_download_failure_keeps_previous_copy(self, service, connector):
        connector.download_catalog.side_effect = ConnectionError("FTP timeout")

        result = await service.run_catalog_sync()

        assert result.success is False
        assert "FTP timeout" in result.message
        assert service.feed_store.load("bill_hicks", "catalog") is None

    @pytest.mark.asyncio
    async def test_unconfigured_vendor(self, service):
        service.vendor_repository.find_all.return_value = []
        result = await service.run_catalog_sync()
        assert result.success is False
        assert "not configured" in result.message

    @pytest.mark.asyncio
    async def test_claim_failure_is_reported_not_raised(self, service):
        service.vendor_repository.claim_sync.side_effect = RuntimeError("connection reset")

        result = await service.run_catalog_sync()

        assert result.success is False
        assert "connection reset" in result.message
        fields = _last_update(service)
        assert fields["bill_hicks_master_catalog_sync_status"] == "error"


class TestInventorySync:

    def test_apply_inventory_splits_rows(self, service):
        service.inventory_repository.find_quantities.return_value = {
            "A": {"id": 10, "quantity_available": 5},
            "B": {"id": 11, "quantity_available": 2},
        }
        items = [
            {"vendor_sku": "A", "upc": "1", "quantity": 5},
            {"vendor_sku": "B", "upc": "2", "quantity": 7},
            {"vendor_sku": "C", "upc": "3", "quantity": 1},
        ]

        stats = service.apply_inventory(4, items)

        service.inventory_repository.bulk_apply.assert_called_once_with(4, [("C", 1)], [(11, 7)])
        assert (stats.records_added, stats.records_updated, stats.records_skipped) == (1, 1, 1)
        assert stats.total_records == 3

    def test_repeated_sku_keeps_last_row(self, service):
        service.inventory_repository.find_quantities.return_value = {}
        items = parse_inventory_rows("Product,UPC,Qty Avail\nBUR 1,111,5\nBUR 1,111,7\n")

        stats = service.apply_inventory(4, items)

        service.inventory_repository.bulk_apply.assert_called_once_with(4, [("BUR 1", 7)], [])
        assert stats.records_added == 1
        assert stats.total_records == 1

    @pytest.mark.asyncio
    async def test_run_inventory_sync(self, service):
        service.inventory_repository.find_quantities.return_value = {}

        result = await service.run_inventory_sync()

        assert result.success is True
        assert result.records_added == 2
        fields = _last_update(service)
        assert fields["bill_hicks_inventory_sync_status"] == "success"
        assert "bill_hicks_last_inventory_sync" in fields


class TestAdminControls:

    def test_clear_error_after_previous_success(self, service, vendor):
        vendor.bill_hicks_master_catalog_last_sync = "2025-10-01T02:00:00Z"
        assert service.clear_catalog_error() == "success"

    def test_clear_error_never_synced(self, service):
        assert service.clear_inventory_error() == "never_synced"
        fields = _last_update(service)
        assert fields == {"bill_hicks_inventory_sync_status": "never_synced", "bill_hicks_inventory_sync_error": None}

    def test_schedule_rejects_bad_time(self, service):
        with pytest.raises(ValueError):
            service.update_schedule(catalog_time="25:00")

    def test_schedule_update(self, service):
        service.update_schedule(catalog_enabled=False, inventory_time="04:30")
        service.vendor_repository.update.assert_called_once_with(4, {
            "bill_hicks_master_catalog_sync_enabled": False,
            "bill_hicks_inventory_sync_time": "04:30",
        })
