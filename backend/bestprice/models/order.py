"""
Vendor purchase orders and ASNs
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, DECIMAL, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bestprice.core.database import Base


class Order(Base):
    """Purchase order placed by a store with one vendor"""
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("company_id", "order_number", name="uq_orders_company_order_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), index=True)
    vendor_id = Column(Integer, ForeignKey("supported_vendors.id"), nullable=False, index=True)
    order_number = Column(String(50), nullable=False)
    external_order_number = Column(String(100))

    status = Column(String(20), nullable=False, default="draft", index=True)
    order_type = Column(String(30), nullable=False, default="standard")
    order_date = Column(DateTime(timezone=True), server_default=func.now())
    submitted_at = Column(DateTime(timezone=True))

    total_amount = Column(DECIMAL(12, 2), default=0)
    item_count = Column(Integer, default=0)
    shipping_cost = Column(DECIMAL(12, 2), default=0)
    notes = Column(Text)

    # Shipping / drop-ship
    drop_ship_flag = Column(Boolean, default=False)
    insurance_flag = Column(Boolean, default=False)
    customer = Column(String(255))
    delivery_option = Column(String(30))
    ffl_number = Column(String(50))
    ship_to_name = Column(String(255))
    ship_to_line1 = Column(String(255))
    ship_to_line2 = Column(String(255))
    ship_to_city = Column(String(100))
    ship_to_state = Column(String(50))
    ship_to_zip = Column(String(20))
    billing_name = Column(String(255))
    billing_line1 = Column(String(255))
    billing_line2 = Column(String(255))
    billing_city = Column(String(100))
    billing_state = Column(String(50))
    billing_zip = Column(String(20))

    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), index=True)
    vendor_product_id = Column(Integer, ForeignKey("vendor_product_mappings.id"))
    vendor_sku = Column(String(100))
    quantity = Column(Integer, nullable=False, default=1)
    unit_cost = Column(DECIMAL(12, 2), nullable=False, default=0)
    total_cost = Column(DECIMAL(12, 2), nullable=False, default=0)
    vendor_msrp = Column(DECIMAL(12, 2))
    vendor_map_price = Column(DECIMAL(12, 2))
    retail_price = Column(DECIMAL(12, 2))
    pricing_strategy = Column(String(50))
    customer_reference = Column(Text)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    order = relationship("Order", back_populates="items")


class PoSequence(Base):
    __tablename__ = "po_sequences"

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, unique=True)
    last_sequence = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Asn(Base):
    """Advanced Ship Notice received (or built) for an order"""
    __tablename__ = "asns"

    id = Column(Integer, primary_key=True, index=True)
    asn_number = Column(String(100), nullable=False, unique=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("supported_vendors.id"), nullable=False)
    status = Column(String(20), nullable=False, default="open")
    ship_date = Column(DateTime(timezone=True))
    tracking_number = Column(String(255))
    items_shipped = Column(Integer, default=0)
    items_total = Column(Integer, default=0)
    shipping_cost = Column(DECIMAL(12, 2), default=0)
    notes = Column(Text)
    raw_data = Column(JSONB)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("AsnItem", back_populates="asn", cascade="all, delete-orphan")


class AsnItem(Base):
    __tablename__ = "asn_items"

    id = Column(Integer, primary_key=True)
    asn_id = Column(Integer, ForeignKey("asns.id", ondelete="CASCADE"), nullable=False, index=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False)
    quantity_shipped = Column(Integer, nullable=False, default=0)
    quantity_backordered = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    asn = relationship("Asn", back_populates="items")
