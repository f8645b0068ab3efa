"""
Order Service - Business logic for vendor purchase orders

Handles PO numbering, status transitions, item totals, consolidation of
duplicate lines and the bulk actions of the orders page.

Author: TM3
Date: 2025-10-17
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Any, Tuple

from bestprice.domain.order import (
    VendorOrder, ORDER_STATUSES, ORDER_TYPES, DELIVERY_OPTIONS, DELETABLE_STATUSES
)
from bestprice.domain.vendor import SupportedVendor
from bestprice.repositories.order_repository import OrderRepository
from bestprice.repositories.store_repository import StoreRepository
from bestprice.services.vendor_registry import vendor_kind, CHATTANOOGA

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
SHIP_TO_REQUIRED = (
    ("ship_to_name", "Ship-to name"),
    ("ship_to_line1", "Ship-to address"),
    ("ship_to_city", "Ship-to city"),
    ("ship_to_state", "Ship-to state"),
    ("ship_to_zip", "Ship-to ZIP"),
)
# Set through the status endpoint only
PROTECTED_FIELDS = ("status", "order_number", "submitted_at", "created_by")


def format_po_number(store_number: str, sequence: int) -> str:
    return f"{store_number}-{sequence:04d}"


def line_total(quantity: int, unit_cost) -> Decimal:
    return (Decimal(str(unit_cost)) * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)


class OrderService:

    def __init__(
        self,
        repository: Optional[OrderRepository] = None,
        store_repository: Optional[StoreRepository] = None
    ):
        self.repository = repository or OrderRepository()
        self.store_repository = store_repository or StoreRepository()

    def get_order(self, company_id: int, order_id: int) -> VendorOrder:
        """
        Raises:
            LookupError: order does not exist in this company
        """
        order = self.repository.find_by_id(company_id, order_id)
        if not order:
            raise LookupError(f"Order {order_id} not found")
        return order

    def next_po_number(self, company_id: int, store_id: int) -> str:
        store = self.store_repository.find_by_id(company_id, store_id)
        if not store:
            raise ValueError(f"Store {store_id} not found")
        sequence = self.repository.next_po_sequence(store_id)
        return format_po_number(store.store_number, sequence)

    # =========================================================================
    # Orders
    # =========================================================================

    def create_order(self, company_id: int, data: Dict[str, Any], created_by: Optional[int] = None) -> VendorOrder:
        """
        Create a draft order numbered from the store's PO sequence

        Raises:
            ValueError: missing store/vendor or invalid order type
        """
        if not data.get("store_id"):
            raise ValueError("store_id is required")
        if not data.get("vendor_id"):
            raise ValueError("vendor_id is required")

        order_type = data.get("order_type") or "standard"
        if order_type not in ORDER_TYPES:
            raise ValueError(f"Invalid order type '{order_type}'. Must be one of: {', '.join(ORDER_TYPES)}")

        fields = {k: v for k, v in data.items() if k not in PROTECTED_FIELDS and k != "items"}
        fields["order_type"] = order_type
        fields["status"] = "draft"
        fields["order_number"] = self.next_po_number(company_id, data["store_id"])
        fields["created_by"] = created_by

        order_id = self.repository.create(company_id, fields)
        for item in data.get("items") or []:
            self.repository.add_item(order_id, self._item_fields(item))
        if data.get("items"):
            self.repository.recalculate_totals(order_id)

        logger.info(f"Created order {fields['order_number']} for company {company_id}")
        return self.get_order(company_id, order_id)

    def update_order(self, company_id: int, order_id: int, data: Dict[str, Any]) -> VendorOrder:
        order = self.get_order(company_id, order_id)
        if order.status in ("complete", "cancelled"):
            raise ValueError(f"Order {order.order_number} is {order.status} and can no longer be edited")

        fields = {k: v for k, v in data.items() if k not in PROTECTED_FIELDS and k != "items"}
        if "order_type" in fields and fields["order_type"] not in ORDER_TYPES:
            raise ValueError(f"Invalid order type '{fields['order_type']}'")
        if fields.get("delivery_option") and fields["delivery_option"] not in DELIVERY_OPTIONS:
            raise ValueError(f"Invalid delivery option '{fields['delivery_option']}'")
        if fields.get("store_id") is not None and fields["store_id"] != order.store_id:
            if not self.store_repository.find_by_id(company_id, fields["store_id"]):
                raise ValueError(f"Store {fields['store_id']} does not belong to this organization")

        self.repository.update(order_id, fields)
        return self.get_order(company_id, order_id)

    def delete_order(self, company_id: int, order_id: int):
        order = self.get_order(company_id, order_id)
        if order.status not in DELETABLE_STATUSES:
            raise ValueError(f"Only draft or cancelled orders can be deleted (order is {order.status})")
        self.repository.delete_many(company_id, [order_id])
        logger.info(f"Deleted order {order.order_number}")

    def transition_status(self, company_id: int, order_id: int, new_status: str) -> VendorOrder:
        """
        Move an order along draft -> open -> complete (or cancelled)

        Raises:
            ValueError: unknown status or transition not allowed
        """
        if new_status not in ORDER_STATUSES:
            raise ValueError(f"Invalid status '{new_status}'. Must be one of: {', '.join(ORDER_STATUSES)}")

        order = self.get_order(company_id, order_id)
        if order.status == new_status:
            return order
        if not order.can_transition_to(new_status):
            raise ValueError(f"Cannot change order {order.order_number} from {order.status} to {new_status}")

        fields: Dict[str, Any] = {"status": new_status}
        if new_status == "open":
            fields["submitted_at"] = datetime.now(timezone.utc)

        self.repository.update(order_id, fields)
        logger.info(f"Order {order.order_number}: {order.status} -> {new_status}")
        return self.get_order(company_id, order_id)

    # =========================================================================
    # Items
    # =========================================================================

    def _item_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        quantity = data.get("quantity")
        quantity = 1 if quantity is None else int(quantity)
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")
        unit_cost = Decimal(str(data.get("unit_cost") or 0))
        if unit_cost < 0:
            raise ValueError("Unit cost cannot be negative")

        fields = {k: v for k, v in data.items() if k not in ("id", "order_id", "total_cost")}
        fields["quantity"] = quantity
        fields["unit_cost"] = unit_cost
        fields["total_cost"] = line_total(quantity, unit_cost)
        return fields

    def _editable_order(self, company_id: int, order_id: int) -> VendorOrder:
        order = self.get_order(company_id, order_id)
        if order.status not in ("draft", "open"):
            raise ValueError(f"Items of a {order.status} order cannot be changed")
        return order

    def add_item(self, company_id: int, order_id: int, data: Dict[str, Any]) -> VendorOrder:
        self._editable_order(company_id, order_id)
        self.repository.add_item(order_id, self._item_fields(data))
        self.repository.recalculate_totals(order_id)
        return self.get_order(company_id, order_id)

    def update_item(self, company_id: int, order_id: int, item_id: int, data: Dict[str, Any]) -> VendorOrder:
        order = self._editable_order(company_id, order_id)
        item = next((i for i in order.items if i.id == item_id), None)
        if not item:
            raise LookupError(f"Item {item_id} not found on order {order.order_number}")

        merged = {"quantity": item.quantity, "unit_cost": item.unit_cost}
        merged.update({k: v for k, v in data.items() if v is not None})
        self.repository.update_item(order_id, item_id, self._item_fields(merged))
        self.repository.recalculate_totals(order_id)
        return self.get_order(company_id, order_id)

    def remove_item(self, company_id: int, order_id: int, item_id: int) -> VendorOrder:
        self._editable_order(company_id, order_id)
        if not self.repository.delete_items(order_id, [item_id]):
            raise LookupError(f"Item {item_id} not found")
        self.repository.recalculate_totals(order_id)
        return self.get_order(company_id, order_id)

    def consolidate_items(self, company_id: int, order_id: int) -> Dict[str, Any]:
        """
        Merge lines for the same product into the first one

        Quantities are summed, unit cost averaged, distinct customer
        references joined with " | ". Duplicate lines are deleted.
        """
        order = self._editable_order(company_id, order_id)

        groups: Dict[Tuple, list] = {}
        for item in order.items:
            groups.setdefault((item.product_id, item.vendor_product_id), []).append(item)

        merged_groups = 0
        removed_ids = []
        for items in groups.values():
            if len(items) < 2:
                continue

            keeper = items[0]
            quantity = sum(i.quantity for i in items)
            unit_cost = (sum(Decimal(str(i.unit_cost)) for i in items) / len(items)).quantize(CENTS, rounding=ROUND_HALF_UP)

            references = []
            for i in items:
                ref = (i.customer_reference or "").strip()
                if ref and ref not in references:
                    references.append(ref)

            self.repository.update_item(order_id, keeper.id, {
                "quantity": quantity,
                "unit_cost": unit_cost,
                "total_cost": line_total(quantity, unit_cost),
                "customer_reference": " | ".join(references) or None,
            })
            removed_ids.extend(i.id for i in items[1:])
            merged_groups += 1

        if removed_ids:
            self.repository.delete_items(order_id, removed_ids)
            self.repository.recalculate_totals(order_id)
            logger.info(f"Order {order.order_number}: consolidated {len(removed_ids)} duplicate lines")

        return {
            "order": self.get_order(company_id, order_id),
            "groups_merged": merged_groups,
            "items_removed": len(removed_ids),
        }

    # =========================================================================
    # Bulk actions
    # =========================================================================

    def bulk_delete(self, company_id: int, order_ids: List[int]) -> Dict[str, Any]:
        orders = self.repository.find_many(company_id, order_ids)
        deletable = [o.id for o in orders if o.status in DELETABLE_STATUSES]
        skipped = [
            {"id": o.id, "order_number": o.order_number, "error": f"Order is {o.status}"}
            for o in orders if o.status not in DELETABLE_STATUSES
        ]
        found = {o.id for o in orders}
        skipped.extend({"id": i, "error": "Order not found"} for i in order_ids if i not in found)

        deleted = self.repository.delete_many(company_id, deletable)
        return {"deleted": deleted, "skipped": skipped}

    def bulk_status(self, company_id: int, order_ids: List[int], new_status: str) -> List[Dict[str, Any]]:
        """Per-order result; a failed transition does not stop the others"""
        results = []
        for order_id in order_ids:
            try:
                order = self.transition_status(company_id, order_id, new_status)
                results.append({"id": order_id, "success": True, "status": order.status})
            except (ValueError, LookupError) as e:
                results.append({"id": order_id, "success": False, "error": str(e)})
        return results

    def bulk_merge(self, company_id: int, order_ids: List[int]) -> VendorOrder:
        """
        Merge draft orders for the same vendor and store into the first one

        Raises:
            ValueError: fewer than two orders, mixed vendor/store, or non-draft orders
        """
        if len(order_ids) < 2:
            raise ValueError("Select at least two orders to merge")

        orders = self.repository.find_many(company_id, order_ids)
        if len(orders) != len(set(order_ids)):
            raise LookupError("One or more orders were not found")

        if len({(o.vendor_id, o.store_id) for o in orders}) > 1:
            raise ValueError("Only orders for the same vendor and store can be merged")
        not_draft = [o.order_number for o in orders if o.status != "draft"]
        if not_draft:
            raise ValueError(f"Only draft orders can be merged: {', '.join(not_draft)}")

        target = orders[0]
        sources = [o.id for o in orders[1:]]
        self.repository.move_items(target.id, sources)
        self.repository.delete_many(company_id, sources)
        self.repository.recalculate_totals(target.id)
        logger.info(f"Merged {len(sources)} orders into {target.order_number}")

        return self.consolidate_items(company_id, target.id)["order"]

    # =========================================================================
    # Submission checks
    # =========================================================================

    def validate_for_submission(self, order: VendorOrder, vendor: Optional[SupportedVendor] = None) -> Dict[str, Any]:
        """
        Check an order is complete enough to send to the vendor

        Returns:
            {"valid": bool, "errors": [...], "ffl_number": FFL without hyphens}
        """
        errors = []
        for field, label in SHIP_TO_REQUIRED:
            if not (getattr(order, field) or "").strip():
                errors.append(f"{label} is required")

        if order.is_drop_ship and not (order.customer or "").strip():
            errors.append("Customer is required for drop-ship orders")

        if vendor is not None and vendor_kind(vendor) == CHATTANOOGA:
            if order.delivery_option not in DELIVERY_OPTIONS:
                errors.append(f"Delivery option must be one of: {', '.join(DELIVERY_OPTIONS)}")

        if not order.items:
            errors.append("Order has no items")

        ffl_number = order.ffl_number.replace("-", "") if order.ffl_number else None
        return {"valid": not errors, "errors": errors, "ffl_number": ffl_number}
