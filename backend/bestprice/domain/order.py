"""
Order Domain Models

Purchase orders a store places with one vendor, and their line items.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

ORDER_STATUSES = ("draft", "open", "complete", "cancelled")
ORDER_TYPES = ("standard", "dropship_accessory", "dropship_firearm")
ITEM_STATUSES = ("pending", "ordered", "shipped", "received", "backordered")
DELIVERY_OPTIONS = ("best", "fastest", "economy", "ground", "next_day_air", "second_day_air")

# complete and cancelled are terminal
ORDER_TRANSITIONS = {
    "draft": ("open", "cancelled"),
    "open": ("complete", "cancelled"),
    "complete": (),
    "cancelled": (),
}

DELETABLE_STATUSES = ("draft", "cancelled")


class OrderItem(BaseModel):
    """Order line item"""

    id: int = Field(..., description="Order item ID")
    order_id: int = Field(..., description="Parent order ID")
    product_id: Optional[int] = Field(None, description="Product catalog ID")
    vendor_product_id: Optional[int] = Field(None, description="Vendor product mapping ID")
    vendor_sku: Optional[str] = Field(None, description="Vendor SKU")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    unit_cost: Decimal = Field(Decimal("0"), description="Cost per unit", ge=0)
    total_cost: Decimal = Field(Decimal("0"), description="quantity * unit_cost", ge=0)
    vendor_msrp: Optional[Decimal] = Field(None, description="Vendor MSRP")
    vendor_map_price: Optional[Decimal] = Field(None, description="Vendor MAP")
    retail_price: Optional[Decimal] = Field(None, description="Store retail price")
    pricing_strategy: Optional[str] = Field(None, description="Pricing rule applied")
    customer_reference: Optional[str] = Field(None, description="Customer / special order reference")
    status: str = Field("pending", description="pending | ordered | shipped | received | backordered")

    # From product catalog (optional, from JOIN)
    product_name: Optional[str] = None
    upc: Optional[str] = None
    brand: Optional[str] = None
    manufacturer_part_number: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump()
        for field in ("unit_cost", "total_cost", "vendor_msrp", "vendor_map_price", "retail_price"):
            if data.get(field) is not None:
                data[field] = float(data[field])
        return data


class VendorOrder(BaseModel):
    """
    Vendor order domain model

    Fields:
        order_number: {store_number}-{sequence}, unique per company
        status: draft -> open -> complete, or cancelled from draft/open
        order_type: standard | dropship_accessory | dropship_firearm
        ship_to_*: destination; required before the order is submitted
        customer: end customer, required for drop-ship orders
    """

    id: int = Field(..., description="Order ID")
    company_id: int = Field(..., description="Company ID")
    store_id: Optional[int] = Field(None, description="Store ID")
    vendor_id: int = Field(..., description="Supported vendor ID")
    order_number: str = Field(..., description="PO number")
    external_order_number: Optional[str] = Field(None, description="Vendor's order number")
    status: str = Field("draft", description="draft | open | complete | cancelled")
    order_type: str = Field("standard", description="Order type")
    order_date: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    total_amount: Decimal = Field(Decimal("0"), ge=0)
    item_count: int = Field(0, ge=0)
    shipping_cost: Optional[Decimal] = Field(Decimal("0"))
    notes: Optional[str] = None

    drop_ship_flag: bool = False
    insurance_flag: bool = False
    customer: Optional[str] = None
    delivery_option: Optional[str] = None
    ffl_number: Optional[str] = None
    ship_to_name: Optional[str] = None
    ship_to_line1: Optional[str] = None
    ship_to_line2: Optional[str] = None
    ship_to_city: Optional[str] = None
    ship_to_state: Optional[str] = None
    ship_to_zip: Optional[str] = None
    billing_name: Optional[str] = None
    billing_line1: Optional[str] = None
    billing_line2: Optional[str] = None
    billing_city: Optional[str] = None
    billing_state: Optional[str] = None
    billing_zip: Optional[str] = None

    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # From JOINs
    vendor_name: Optional[str] = None
    vendor_short_code: Optional[str] = None
    store_name: Optional[str] = None

    items: List[OrderItem] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_drop_ship(self) -> bool:
        return self.drop_ship_flag or self.order_type.startswith("dropship")

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in ORDER_TRANSITIONS.get(self.status, ())

    def to_dict(self) -> dict:
        data = self.model_dump(exclude={"items"})
        for field in ("total_amount", "shipping_cost"):
            if data.get(field) is not None:
                data[field] = float(data[field])
        data["items"] = [item.to_dict() for item in self.items]
        return data
