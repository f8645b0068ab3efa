"""
ASN Domain Models

Advanced Ship Notices: what a vendor shipped (or backordered) against an order.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Any
from datetime import datetime
from decimal import Decimal

ASN_STATUSES = ("open", "complete", "partial", "cancelled")


class AsnItem(BaseModel):
    id: Optional[int] = None
    asn_id: Optional[int] = None
    order_item_id: int = Field(..., description="Order item shipped against")
    quantity_shipped: int = Field(0, ge=0)
    quantity_backordered: int = Field(0, ge=0)

    # From JOINs
    vendor_sku: Optional[str] = None
    quantity_ordered: Optional[int] = None
    product_name: Optional[str] = None
    upc: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Asn(BaseModel):
    id: Optional[int] = None
    asn_number: str = Field(..., description="Unique ASN number")
    order_id: int = Field(..., description="Order ID")
    vendor_id: int = Field(..., description="Vendor ID")
    status: str = Field("open", description="open | complete | partial | cancelled")
    ship_date: Optional[datetime] = None
    tracking_number: Optional[str] = None
    items_shipped: int = Field(0, ge=0)
    items_total: int = Field(0, ge=0)
    shipping_cost: Optional[Decimal] = Field(Decimal("0"))
    notes: Optional[str] = None
    raw_data: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # From JOINs
    order_number: Optional[str] = None
    vendor_name: Optional[str] = None
    store_name: Optional[str] = None

    items: List[AsnItem] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump()
        if data.get("shipping_cost") is not None:
            data["shipping_cost"] = float(data["shipping_cost"])
        return data
