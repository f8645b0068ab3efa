"""
Vendors (distributors), credentials and catalog
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, DECIMAL, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from bestprice.core.database import Base


class SupportedVendor(Base):
    """
    Distributor integrations available on the platform.

    Admin-level credentials and the per-vendor sync schedule/status columns
    live on this row.
    """
    __tablename__ = "supported_vendors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    vendor_short_code = Column(String(50), unique=True)
    description = Column(Text)
    api_type = Column(String(20), nullable=False, default="rest_api")
    vendor_type = Column(String(50), default="distributor")
    name_aliases = Column(JSONB, default=list)
    credential_fields = Column(JSONB, default=list)
    features = Column(JSONB, default=dict)
    logo_url = Column(Text)
    website_url = Column(Text)
    is_enabled = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)
    product_record_priority = Column(Integer, unique=True)

    admin_credentials = Column(JSONB)
    admin_connection_status = Column(String(20), default="not_configured")
    last_catalog_sync = Column(DateTime(timezone=True))
    catalog_sync_status = Column(String(20))
    catalog_sync_error = Column(Text)
    last_sync_new_records = Column(Integer, default=0)
    last_sync_records_updated = Column(Integer, default=0)
    last_sync_records_skipped = Column(Integer, default=0)
    last_sync_records_failed = Column(Integer, default=0)

    # Sports South
    sports_south_schedule_enabled = Column(Boolean, default=False)
    sports_south_schedule_time = Column(String(5), default="14:00")
    sports_south_schedule_frequency = Column(String(20), default="daily")
    sports_south_last_full_sync = Column(DateTime(timezone=True))

    # Chattanooga
    chattanooga_schedule_enabled = Column(Boolean, default=False)
    chattanooga_schedule_time = Column(String(5), default="15:00")
    chattanooga_schedule_frequency = Column(String(20), default="daily")
    chattanooga_last_sync = Column(DateTime(timezone=True))
    chattanooga_sync_status = Column(String(20), default="never_synced")
    chattanooga_sync_error = Column(Text)
    chattanooga_csv_hash = Column(String(64))
    chattanooga_records_added = Column(Integer, default=0)
    chattanooga_records_updated = Column(Integer, default=0)
    chattanooga_records_skipped = Column(Integer, default=0)
    chattanooga_records_failed = Column(Integer, default=0)
    chattanooga_total_records = Column(Integer, default=0)

    # Bill Hicks master catalog
    bill_hicks_master_catalog_sync_enabled = Column(Boolean, default=True)
    bill_hicks_master_catalog_sync_time = Column(String(5), default="02:00")
    bill_hicks_master_catalog_sync_status = Column(String(20), default="never_synced")
    bill_hicks_master_catalog_last_sync = Column(DateTime(timezone=True))
    bill_hicks_master_catalog_sync_error = Column(Text)
    bill_hicks_master_catalog_records_added = Column(Integer, default=0)
    bill_hicks_master_catalog_records_updated = Column(Integer, default=0)
    bill_hicks_master_catalog_records_skipped = Column(Integer, default=0)
    bill_hicks_master_catalog_records_failed = Column(Integer, default=0)
    bill_hicks_master_catalog_total_records = Column(Integer, default=0)

    # Bill Hicks inventory
    bill_hicks_inventory_sync_enabled = Column(Boolean, default=True)
    bill_hicks_inventory_sync_time = Column(String(5), default="03:00")
    bill_hicks_inventory_sync_status = Column(String(20), default="never_synced")
    bill_hicks_last_inventory_sync = Column(DateTime(timezone=True))
    bill_hicks_inventory_sync_error = Column(Text)
    bill_hicks_inventory_records_added = Column(Integer, default=0)
    bill_hicks_inventory_records_updated = Column(Integer, default=0)
    bill_hicks_inventory_records_skipped = Column(Integer, default=0)
    bill_hicks_inventory_records_failed = Column(Integer, default=0)
    bill_hicks_inventory_total_records = Column(Integer, default=0)

    # Lipsey's
    lipseys_catalog_sync_enabled = Column(Boolean, default=False)
    lipseys_catalog_sync_time = Column(String(5), default="08:00")
    lipseys_catalog_sync_status = Column(String(20), default="never_synced")
    lipseys_last_catalog_sync = Column(DateTime(timezone=True))
    lipseys_catalog_sync_error = Column(Text)
    lipseys_records_added = Column(Integer, default=0)
    lipseys_records_updated = Column(Integer, default=0)
    lipseys_records_skipped = Column(Integer, default=0)
    lipseys_records_failed = Column(Integer, default=0)
    lipseys_total_records = Column(Integer, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CompanyVendorCredentials(Base):
    """Store-level (company) credentials, one row per company and vendor"""
    __tablename__ = "company_vendor_credentials"
    __table_args__ = (
        UniqueConstraint("company_id", "supported_vendor_id", name="uq_company_vendor_credentials"),
    )

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    supported_vendor_id = Column(Integer, ForeignKey("supported_vendors.id", ondelete="CASCADE"), nullable=False)
    credentials = Column(JSONB, default=dict)
    is_enabled = Column(Boolean, default=True)

    connection_status = Column(String(20), default="not_tested")
    last_connection_test = Column(DateTime(timezone=True))
    connection_error = Column(Text)

    catalog_sync_enabled = Column(Boolean, default=False)
    catalog_sync_schedule = Column(String(20), default="daily")
    inventory_sync_enabled = Column(Boolean, default=False)
    last_catalog_sync = Column(DateTime(timezone=True))
    catalog_sync_status = Column(String(20))
    catalog_sync_error = Column(Text)
    catalog_records_updated = Column(Integer, default=0)
    last_inventory_sync = Column(DateTime(timezone=True))
    inventory_sync_status = Column(String(20))
    inventory_sync_error = Column(Text)
    inventory_records_updated = Column(Integer, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Product(Base):
    """Master catalog record, one per UPC"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    upc = Column(String(50), unique=True, index=True)
    name = Column(Text, nullable=False)
    brand = Column(String(255))
    manufacturer_part_number = Column(String(255))
    model = Column(String(255))
    caliber = Column(String(100))
    category = Column(String(255))
    description = Column(Text)
    image_url = Column(Text)
    source = Column(String(255), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class VendorProductMapping(Base):
    __tablename__ = "vendor_product_mappings"
    __table_args__ = (
        UniqueConstraint("supported_vendor_id", "vendor_sku", name="uq_vendor_product_mappings"),
    )

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    supported_vendor_id = Column(Integer, ForeignKey("supported_vendors.id", ondelete="CASCADE"), nullable=False)
    vendor_sku = Column(String(100), nullable=False)
    vendor_cost = Column(DECIMAL(12, 2))
    map_price = Column(DECIMAL(12, 2))
    msrp_price = Column(DECIMAL(12, 2))
    quantity_available = Column(Integer)
    last_price_update = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class VendorInventory(Base):
    __tablename__ = "vendor_inventory"
    __table_args__ = (
        UniqueConstraint("supported_vendor_id", "vendor_sku", name="uq_vendor_inventory"),
    )

    id = Column(Integer, primary_key=True)
    supported_vendor_id = Column(Integer, ForeignKey("supported_vendors.id", ondelete="CASCADE"), nullable=False)
    vendor_sku = Column(String(100), nullable=False)
    quantity_available = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
