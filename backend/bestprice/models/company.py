"""
Modelos de organizaciones, tiendas, usuarios y planes
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bestprice.core.database import Base


class Company(Base):
    """Tenant organization, addressed by slug in /org/{slug}/api routes"""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)

    # Subscription
    plan = Column(String(50), nullable=False, default="free")
    status = Column(String(50), nullable=False, default="trial", index=True)
    trial_status = Column(String(50))
    trial_started_at = Column(DateTime(timezone=True))
    trial_ends_at = Column(DateTime(timezone=True))
    trial_extensions = Column(Integer, default=0)
    billing_provider = Column(String(50))
    billing_customer_id = Column(String(255))
    billing_subscription_id = Column(String(255))

    # Overrides; NULL means use plan_settings
    max_users = Column(Integer)
    max_vendors = Column(Integer)
    max_orders = Column(Integer)

    email = Column(String(255))
    phone = Column(String(50))
    address1 = Column(String(255))
    address2 = Column(String(255))
    city = Column(String(100))
    state = Column(String(50))
    zip_code = Column(String(20))
    country = Column(String(50), default="US")
    settings = Column(JSONB, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    stores = relationship("Store", back_populates="company")
    users = relationship("User", back_populates="company")


class OrganizationStatusAuditLog(Base):
    __tablename__ = "organization_status_audit_log"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    previous_status = Column(String(50))
    new_status = Column(String(50), nullable=False)
    reason = Column(Text)
    changed_by = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Store(Base):
    __tablename__ = "stores"
    __table_args__ = (
        UniqueConstraint("company_id", "slug", name="uq_stores_company_slug"),
        UniqueConstraint("company_id", "store_number", name="uq_stores_company_store_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), nullable=False)
    short_name = Column(String(20))
    store_number = Column(String(10), nullable=False)

    address1 = Column(String(255))
    address2 = Column(String(255))
    city = Column(String(100))
    state = Column(String(50))
    zip_code = Column(String(20))
    country = Column(String(50), default="US")
    phone = Column(String(50))
    ffl_number = Column(String(50))
    timezone = Column(String(64), default="America/New_York")
    currency = Column(String(3), default="USD")

    status = Column(String(20), nullable=False, default="active", index=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    company = relationship("Company", back_populates="stores")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255))
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, default=True)
    last_login_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    company = relationship("Company", back_populates="users")


class UserStore(Base):
    __tablename__ = "user_stores"
    __table_args__ = (UniqueConstraint("user_id", "store_id", name="uq_user_stores"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PlanSettings(Base):
    __tablename__ = "plan_settings"

    id = Column(Integer, primary_key=True)
    plan_id = Column(String(50), nullable=False, unique=True)
    plan_name = Column(String(100), nullable=False)
    trial_length_days = Column(Integer, default=14)
    plan_length_days = Column(Integer, default=30)
    max_users = Column(Integer)
    max_vendors = Column(Integer)
    max_orders = Column(Integer)
    online_ordering = Column(Boolean, default=False)
    asn_processing = Column(Boolean, default=False)
    webhook_export = Column(Boolean, default=False)
    advanced_analytics = Column(Boolean, default=False)
    api_access = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AdminSettings(Base):
    """Single-row platform configuration"""
    __tablename__ = "admin_settings"

    id = Column(Integer, primary_key=True)
    sendgrid_api_key = Column(Text)
    smtp2go_api_key = Column(Text)
    smtp_host = Column(String(255))
    smtp_port = Column(Integer)
    smtp_user = Column(String(255))
    smtp_password = Column(Text)
    system_email = Column(String(255))
    system_time_zone = Column(String(64), default="America/New_York")
    maintenance_mode = Column(Boolean, default=False)
    registration_enabled = Column(Boolean, default=True)
    max_organizations = Column(Integer, default=1000)
    support_email = Column(String(255))
    company_name = Column(String(255))
    brand_name = Column(String(255))
    support_domain = Column(String(255))
    logo_url = Column(Text)
    zoho_billing_client_id = Column(Text)
    zoho_billing_client_secret = Column(Text)
    zoho_billing_refresh_token = Column(Text)
    zoho_billing_org_id = Column(String(100))
    zoho_billing_base_url = Column(Text)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
