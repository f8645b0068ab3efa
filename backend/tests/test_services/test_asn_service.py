"""
Unit tests for ASN construction

Author: TM3
Date: 2025-10-17
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from bestprice.domain.asn import Asn
from bestprice.domain.order import VendorOrder, OrderItem
from bestprice.services.asn_service import AsnService, asn_status, build_from_lipseys_response


@pytest.fixture
def order():
    return VendorOrder(
        id=1, company_id=3, store_id=5, vendor_id=1, order_number="01-0042",
        shipping_cost=Decimal("12.50"),
        items=[
            OrderItem(id=11, order_id=1, vendor_sku="GLK19", quantity=2, unit_cost=Decimal("500")),
            OrderItem(id=12, order_id=1, vendor_sku="HOR9MM", quantity=10, unit_cost=Decimal("15")),
        ],
    )


class TestAsnStatus:

    def test_status_from_quantities(self):
        assert asn_status(0, 5) == "cancelled"
        assert asn_status(3, 5) == "partial"
        assert asn_status(5, 5) == "complete"


class TestLipseysResponse:

    def test_partial_fulfilment(self, order):
        response = {
            "success": True,
            "authorized": True,
            "data": [
                {"itemNumber": "HOR9MM", "requestedQuantity": 10, "fulfilledQuantity": 6, "orderNumber": 777},
                {"itemNumber": "GLK19", "requestedQuantity": 2, "fulfilledQuantity": 2, "orderNumber": 777,
                 "allocated": True},
            ],
        }

        asn = build_from_lipseys_response(order, response)

        assert asn.asn_number == "ASN-LIPSEY-777"
        assert asn.status == "partial"
        assert (asn.items_shipped, asn.items_total) == (8, 12)
        by_item = {i.order_item_id: i for i in asn.items}
        assert by_item[12].quantity_shipped == 6
        assert by_item[12].quantity_backordered == 4
        assert by_item[11].quantity_backordered == 0
        assert "GLK19: Item allocated" in asn.notes
        assert "Lipsey's Order Number(s): 777" in asn.notes
        assert asn.raw_data["original_order_number"] == "01-0042"

    def test_unknown_sku_falls_back_to_position(self, order):
        response = {"success": True, "data": [
            {"itemNumber": "RENAMED", "requestedQuantity": 2, "fulfilledQuantity": 2},
        ]}
        asn = build_from_lipseys_response(order, response)
        assert asn.items[0].order_item_id == 11
        assert asn.asn_number.startswith("ASN-LIPSEY-")

    def test_nothing_shipped_is_cancelled(self, order):
        response = {"success": True, "data": [
            {"itemNumber": "GLK19", "requestedQuantity": 2, "fulfilledQuantity": 0, "orderError": True,
             "errors": ["Out of stock"]},
        ]}
        asn = build_from_lipseys_response(order, response)
        assert asn.status == "cancelled"
        assert "GLK19: Out of stock" in asn.notes

    @pytest.mark.parametrize("response", [
        {"success": False, "errors": ["Invalid token"]},
        {"success": True, "authorized": False},
    ])
    def test_rejected_response(self, order, response):
        with pytest.raises(ValueError, match="not accepted"):
            build_from_lipseys_response(order, response)


class TestAsnService:

    def test_create_from_order_numbers_sequentially(self, order):
        repo = MagicMock()
        repo.count_for_order.return_value = 1
        repo.create.return_value = 55
        repo.find_by_id.return_value = Asn(id=55, asn_number="ASN-01-0042-2", order_id=1, vendor_id=1)

        AsnService(repo).create_from_order(3, order, tracking_number="1Z999")

        created = repo.create.call_args[0][0]
        assert created.asn_number == "ASN-01-0042-2"
        assert created.status == "complete"
        assert created.items_shipped == 12
        assert created.tracking_number == "1Z999"
        assert [i.quantity_shipped for i in created.items] == [2, 10]

    def test_order_without_items(self, order):
        order.items = []
        with pytest.raises(ValueError, match="no items"):
            AsnService(MagicMock()).create_from_order(3, order)

    def test_missing_asn(self):
        repo = MagicMock()
        repo.find_by_id.return_value = None
        with pytest.raises(LookupError):
            AsnService(repo).get_asn(3, 1)

    def test_create_from_lipseys_response_stores_asn(self, order):
        repo = MagicMock()
        repo.create.return_value = 56
        repo.find_by_id.return_value = Asn(id=56, asn_number="ASN-LIPSEY-777", order_id=1, vendor_id=1)
        response = {"success": True, "data": [
            {"itemNumber": "GLK19", "requestedQuantity": 2, "fulfilledQuantity": 2, "orderNumber": 777},
        ]}

        asn = AsnService(repo).create_from_lipseys_response(3, order, response)

        created = repo.create.call_args[0][0]
        assert created.asn_number == "ASN-LIPSEY-777"
        assert created.items_shipped == 2
        repo.find_by_id.assert_called_once_with(3, 56)
        assert asn.id == 56

    def test_rejected_lipseys_response_is_not_stored(self, order):
        repo = MagicMock()
        with pytest.raises(ValueError):
            AsnService(repo).create_from_lipseys_response(3, order, {"success": False})
        repo.create.assert_not_called()
