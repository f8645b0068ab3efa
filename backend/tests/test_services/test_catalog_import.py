"""
Unit tests for the catalog import rule

Author: TM3
Date: 2025-10-17
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock, patch

from bestprice.services.catalog_import import (
    CatalogImporter, CatalogRecord, SyncStats, parse_price, parse_int, ADDED, UPDATED, SKIPPED
)

VENDOR = "Bill Hicks & Co."


@pytest.fixture
def products():
    repo = MagicMock()
    repo.find_by_upc.return_value = None
    repo.create.return_value = 101
    return repo


@pytest.fixture
def importer(products):
    with patch("bestprice.services.catalog_import.preload_vendor_priorities"):
        yield CatalogImporter(vendor_id=4, vendor_name=VENDOR, product_repository=products)


def record(**overrides):
    data = dict(
        upc="012345678905",
        name="Glock 19 Gen5 9mm",
        brand="Glock",
        vendor_sku="GLK-19G5",
        vendor_cost=Decimal("499.00"),
        msrp_price=Decimal("649.00"),
        quantity=3,
    )
    data.update(overrides)
    return CatalogRecord(**data)


class TestParsing:

    def test_parse_price(self):
        assert parse_price("$1,299.99") == Decimal("1299.99")
        assert parse_price("") is None
        assert parse_price("n/a") is None
        assert parse_price(None) is None

    def test_parse_int(self):
        assert parse_int("12") == 12
        assert parse_int("") is None


class TestImportRecord:

    @pytest.mark.parametrize("upc", [None, "", "  ", "0"])
    def test_missing_upc_is_skipped(self, importer, products, upc):
        assert importer.import_record(record(upc=upc)) == SKIPPED
        products.find_by_upc.assert_not_called()
        products.upsert_vendor_mapping.assert_not_called()

    def test_new_upc_creates_product_with_vendor_source(self, importer, products):
        assert importer.import_record(record()) == ADDED

        fields = products.create.call_args[0][0]
        assert fields["upc"] == "012345678905"
        assert fields["source"] == VENDOR
        assert fields["brand"] == "Glock"
        products.upsert_vendor_mapping.assert_called_once()
        args, kwargs = products.upsert_vendor_mapping.call_args
        assert args == (4, "GLK-19G5", 101)
        assert kwargs["vendor_cost"] == Decimal("499.00")
        assert kwargs["quantity_available"] == 3

    def test_new_product_without_name_uses_sku(self, importer, products):
        importer.import_record(record(name=None))
        assert products.create.call_args[0][0]["name"] == "GLK-19G5"

    @patch("bestprice.services.catalog_import.should_replace_product_data", return_value=True)
    def test_existing_product_updated_when_priority_wins(self, _, importer, products):
        products.find_by_upc.return_value = {"id": 7, "name": "Old name", "brand": "Glock", "source": "Sports South"}

        assert importer.import_record(record()) == UPDATED
        product_id, fields = products.update.call_args[0]
        assert product_id == 7
        assert fields["name"] == "Glock 19 Gen5 9mm"
        assert fields["source"] == VENDOR

    @patch("bestprice.services.catalog_import.should_replace_product_data", return_value=False)
    def test_lower_priority_skips_product_but_keeps_mapping(self, _, importer, products):
        products.find_by_upc.return_value = {"id": 7, "name": "Old name", "source": "Lipsey's"}

        assert importer.import_record(record()) == SKIPPED
        products.update.assert_not_called()
        products.upsert_vendor_mapping.assert_called_once()

    @patch("bestprice.services.catalog_import.should_replace_product_data", return_value=True)
    def test_identical_fields_are_skipped(self, _, importer, products):
        products.find_by_upc.return_value = {
            "id": 7, "name": "Glock 19 Gen5 9mm", "brand": "Glock", "source": VENDOR,
        }
        assert importer.import_record(record()) == SKIPPED
        products.update.assert_not_called()


class TestImportRecords:

    def test_failures_are_counted_not_raised(self, importer, products):
        products.create.side_effect = [101, RuntimeError("constraint violation")]

        stats = importer.import_records([record(), record(upc="999"), record(upc="0")])

        assert stats.records_added == 1
        assert stats.records_failed == 1
        assert stats.records_skipped == 1

    def test_accumulates_into_given_stats(self, importer):
        stats = SyncStats(records_added=5)
        importer.import_records([record()], stats)
        assert stats.records_added == 6
