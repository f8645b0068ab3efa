"""
ASN Service - Advanced Ship Notices for vendor orders

Builds ASNs manually from an order, or from a Lipsey's order-submission
response (fulfilled vs requested quantity per line).

Author: TM3
Date: 2025-10-17
"""
import time
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

from bestprice.domain.asn import Asn, AsnItem
from bestprice.domain.order import VendorOrder, OrderItem
from bestprice.repositories.asn_repository import AsnRepository

logger = logging.getLogger(__name__)


def asn_status(shipped: int, ordered: int) -> str:
    if shipped == 0:
        return "cancelled"
    if shipped < ordered:
        return "partial"
    return "complete"


def _match_order_item(order_items: List[OrderItem], item_number: Optional[str], position: int,
                      used: set) -> Optional[OrderItem]:
    """Match a response line by vendor SKU, falling back to line position"""
    if item_number:
        for item in order_items:
            if item.id not in used and item.vendor_sku and item.vendor_sku == item_number:
                return item
    if position < len(order_items) and order_items[position].id not in used:
        return order_items[position]
    return None


def build_from_lipseys_response(order: VendorOrder, response: Dict[str, Any]) -> Asn:
    """
    ASN for a Lipsey's order submission response

    Raises:
        ValueError: when the response was not successful or not authorized
    """
    if not response.get("success") or not response.get("authorized", True):
        errors = ", ".join(response.get("errors") or []) or "unknown error"
        raise ValueError(f"Lipsey's order was not accepted: {errors}")

    lines = response.get("data") or []
    lipseys_order_number = next((line.get("orderNumber") for line in lines if line.get("orderNumber")), None)
    asn_number = f"ASN-LIPSEY-{lipseys_order_number or int(time.time() * 1000)}"

    items = []
    issues = []
    used = set()
    total_shipped = 0
    total_ordered = 0

    for position, line in enumerate(lines):
        item_number = line.get("itemNumber")
        requested = int(line.get("requestedQuantity") or 0)
        fulfilled = int(line.get("fulfilledQuantity") or 0)
        total_ordered += requested
        total_shipped += fulfilled

        if line.get("orderError") or line.get("errors"):
            issues.append(f"{item_number}: {', '.join(line.get('errors') or ['order error'])}")
        if line.get("blocked"):
            issues.append(f"{item_number}: Item blocked")
        if line.get("allocated"):
            issues.append(f"{item_number}: Item allocated")

        order_item = _match_order_item(order.items, item_number, position, used)
        if order_item is None:
            logger.warning(f"ASN {asn_number}: no order line for Lipsey's item {item_number}")
            continue
        used.add(order_item.id)
        items.append(AsnItem(
            order_item_id=order_item.id,
            quantity_shipped=fulfilled,
            quantity_backordered=max(0, requested - fulfilled),
        ))

    successful = sum(1 for line in lines if not line.get("orderError") and (line.get("fulfilledQuantity") or 0) > 0)
    notes = [f"Lipsey's Order Confirmation: {successful}/{len(lines)} items processed successfully"]
    order_numbers = sorted({str(line["orderNumber"]) for line in lines if line.get("orderNumber")})
    if order_numbers:
        notes.append(f"Lipsey's Order Number(s): {', '.join(order_numbers)}")
    if issues:
        notes.append("Issues encountered:")
        notes.extend(issues)
    if response.get("errors"):
        notes.append("General errors: " + ", ".join(response["errors"]))

    return Asn(
        asn_number=asn_number,
        order_id=order.id,
        vendor_id=order.vendor_id,
        status=asn_status(total_shipped, total_ordered),
        ship_date=datetime.now(timezone.utc),
        items_shipped=total_shipped,
        items_total=total_ordered,
        notes="\n".join(notes),
        raw_data={
            "lipseys_order_response": response,
            "processed_at": datetime.now(timezone.utc).isoformat(),
            "original_order_number": order.order_number,
        },
        items=items,
    )


class AsnService:

    def __init__(self, repository: Optional[AsnRepository] = None):
        self.repository = repository or AsnRepository()

    def get_asn(self, company_id: int, asn_id: int) -> Asn:
        asn = self.repository.find_by_id(company_id, asn_id)
        if not asn:
            raise LookupError(f"ASN {asn_id} not found")
        return asn

    def create_from_order(self, company_id: int, order: VendorOrder, tracking_number: Optional[str] = None,
                          notes: Optional[str] = None) -> Asn:
        """
        Manual ASN with every line fully shipped

        Numbered ASN-{order_number}-{n}, n counting the order's ASNs.
        """
        if not order.items:
            raise ValueError(f"Order {order.order_number} has no items to ship")

        sequence = self.repository.count_for_order(order.id) + 1
        quantity = sum(item.quantity for item in order.items)
        asn = Asn(
            asn_number=f"ASN-{order.order_number}-{sequence}",
            order_id=order.id,
            vendor_id=order.vendor_id,
            status="complete",
            ship_date=datetime.now(timezone.utc),
            tracking_number=tracking_number,
            items_shipped=quantity,
            items_total=quantity,
            shipping_cost=order.shipping_cost,
            notes=notes,
            items=[
                AsnItem(order_item_id=item.id, quantity_shipped=item.quantity, quantity_backordered=0)
                for item in order.items
            ],
        )
        asn_id = self.repository.create(asn)
        logger.info(f"Created {asn.asn_number} for order {order.order_number}")
        return self.get_asn(company_id, asn_id)

    def create_from_lipseys_response(self, company_id: int, order: VendorOrder, response: Dict[str, Any]) -> Asn:
        asn = build_from_lipseys_response(order, response)
        asn_id = self.repository.create(asn)
        logger.info(f"Created {asn.asn_number} ({asn.status}) for order {order.order_number}")
        return self.get_asn(company_id, asn_id)
