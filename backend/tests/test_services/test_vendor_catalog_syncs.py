"""
Unit tests for the Chattanooga, Lipsey's and Sports South catalog syncs

Author: TM3
Date: 2025-10-17
"""
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock, AsyncMock, patch

from bestprice.domain.vendor import SupportedVendor
from bestprice.services.chattanooga_sync_service import (
    ChattanoogaSyncService, parse_feed, feed_record, feed_hash
)
from bestprice.services.lipseys_sync_service import LipseysSyncService, catalog_record
from bestprice.services.sports_south_sync_service import SportsSouthSyncService, item_record

CHATTANOOGA_FEED = (
    "SKU,UPC,Name,Manufacturer,Manufacturer Item Number,Category,Price,MAP,MSRP,Qty On Hand\n"
    "CH-1,012345678905,Burris Fullfield,Burris,202224,Optics,$199.99,229.00,249.00,12\n"
    "CH-2,,No UPC Item,Acme,A1,Misc,1.00,,,0\n"
)


@pytest.fixture(autouse=True)
def no_priority_lookups():
    with patch("bestprice.services.catalog_import.preload_vendor_priorities"):
        yield


def build(service_class, vendor, connector):
    vendor_repository = MagicMock()
    vendor_repository.find_all.return_value = [vendor]
    vendor_repository.claim_sync.return_value = True

    vault = MagicMock()
    vault.get_admin_credentials.return_value = {"configured": True}

    products = MagicMock()
    products.find_by_upc.return_value = None
    products.create.return_value = 101

    return service_class(
        vendor_repository=vendor_repository,
        vault=vault,
        product_repository=products,
        connector_factory=lambda credentials: connector,
    )


def last_update(service):
    return service.vendor_repository.update.call_args_list[-1][0][1]


class TestChattanooga:

    @pytest.fixture
    def vendor(self):
        return SupportedVendor(id=2, name="Chattanooga Shooting Supplies", vendor_short_code="chattanooga")

    @pytest.fixture
    def connector(self):
        conn = MagicMock()
        conn.get_product_feed = AsyncMock(return_value=CHATTANOOGA_FEED)
        return conn

    def test_feed_record(self):
        record = feed_record(parse_feed(CHATTANOOGA_FEED)[0])

        assert record.upc == "012345678905"
        assert record.brand == "Burris"
        assert record.vendor_cost == Decimal("199.99")
        assert record.quantity == 12

    @pytest.mark.asyncio
    async def test_sync_imports_and_stores_hash(self, vendor, connector):
        service = build(ChattanoogaSyncService, vendor, connector)

        result = await service.run_sync()

        assert result.success is True
        assert result.records_added == 1
        assert result.records_skipped == 1
        assert last_update(service)["chattanooga_csv_hash"] == feed_hash(CHATTANOOGA_FEED)

    @pytest.mark.asyncio
    async def test_unchanged_feed_skips_import(self, connector):
        vendor = SupportedVendor(
            id=2, name="Chattanooga Shooting Supplies", vendor_short_code="chattanooga",
            chattanooga_csv_hash=feed_hash(CHATTANOOGA_FEED)
        )
        service = build(ChattanoogaSyncService, vendor, connector)

        result = await service.run_sync()

        assert result.changes_detected is False
        assert result.records_skipped == 2
        service.product_repository.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_download_error_marks_failure(self, vendor, connector):
        connector.get_product_feed = AsyncMock(side_effect=ValueError("Product feed response did not include a CSV URL"))
        service = build(ChattanoogaSyncService, vendor, connector)

        result = await service.run_sync()

        assert result.success is False
        assert last_update(service) == {
            "chattanooga_sync_status": "error",
            "chattanooga_sync_error": "Product feed response did not include a CSV URL",
        }


class TestLipseys:

    ITEM = {
        "itemNo": "RU1103",
        "description1": "10/22 Carbine",
        "description2": "22LR 18.5in Blued",
        "upc": "736676011032",
        "manufacturer": "Ruger",
        "manufacturerModelNo": "1103",
        "model": "10/22",
        "caliberGauge": "22 LR",
        "type": "Semi-Auto Rifle",
        "imageName": "RU1103.jpg",
        "price": 249.5,
        "retailMap": 289,
        "msrp": 329,
        "quantity": 40,
    }

    def test_catalog_record(self):
        record = catalog_record(self.ITEM)

        assert record.name == "10/22 Carbine"
        assert record.description == "22LR 18.5in Blued"
        assert record.image_url == "https://www.lipseyscloud.com/images/RU1103.jpg"
        assert record.vendor_cost == Decimal("249.5")
        assert record.map_price == Decimal("289")

    def test_name_falls_back_to_description2(self):
        record = catalog_record(dict(self.ITEM, description1="  "))
        assert record.name == "22LR 18.5in Blued"

    @pytest.mark.asyncio
    async def test_catalog_sync(self):
        vendor = SupportedVendor(id=1, name="Lipsey's", vendor_short_code="lipseys")
        connector = MagicMock()
        connector.get_catalog_feed = AsyncMock(return_value=[self.ITEM])
        service = build(LipseysSyncService, vendor, connector)

        result = await service.run_catalog_sync()

        assert result.success is True
        assert result.total_records == 1
        service.product_repository.upsert_vendor_mapping.assert_called_once()

    def test_invalid_schedule_time(self):
        vendor = SupportedVendor(id=1, name="Lipsey's", vendor_short_code="lipseys")
        service = build(LipseysSyncService, vendor, MagicMock())
        with pytest.raises(ValueError, match="HH:MM"):
            service.update_schedule(time_of_day="25:00")


class TestSportsSouth:

    ROW = {
        "ITEMNO": " 55321 ",
        "IDESC": "Glock 19 Gen5",
        "ITUPC": "764503037108",
        "MFGINO": "PA1950203",
        "CATID": "1",
        "PRC1": "539.00",
        "MFPRC": "649.99",
        "QTYOH": "7",
        "IMFGNO": "118",
    }

    def test_item_record(self):
        record = item_record(self.ROW)

        assert record.vendor_sku == "55321"
        assert record.brand is None
        assert record.vendor_cost == Decimal("539.00")
        assert record.msrp_price == Decimal("649.99")

    def test_brand_from_manufacturer_map(self):
        assert item_record(self.ROW, {"118": "Glock"}).brand == "Glock"

    @pytest.mark.asyncio
    async def test_incremental_without_history_runs_full(self):
        vendor = SupportedVendor(id=3, name="Sports South", vendor_short_code="sports_south")
        connector = MagicMock()
        connector.get_daily_item_update.return_value = [self.ROW]
        service = build(SportsSouthSyncService, vendor, connector)

        result = await service.run_incremental_sync()

        assert result.success is True
        connector.get_daily_item_update.assert_called_once_with(None)
        assert "sports_south_last_full_sync" in last_update(service)

    @pytest.mark.asyncio
    async def test_incremental_since_last_sync(self):
        last = datetime(2025, 10, 16, 6, 0, tzinfo=timezone.utc)
        vendor = SupportedVendor(id=3, name="Sports South", vendor_short_code="sports_south", last_catalog_sync=last)
        connector = MagicMock()
        connector.get_daily_item_update.return_value = []
        service = build(SportsSouthSyncService, vendor, connector)

        result = await service.run_incremental_sync()

        assert result.success is True
        connector.get_daily_item_update.assert_called_once_with(last)
        assert "sports_south_last_full_sync" not in last_update(service)
