"""
Organization Domain Models

Companies (tenants), their stores and the plan catalog.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Dict, Any
from datetime import datetime

PLANS = ("free", "standard", "enterprise")
COMPANY_STATUSES = ("active", "trial", "expired", "cancelled", "paused", "past_due")
# Statuses that block every plan action
BLOCKED_STATUSES = ("expired", "cancelled", "paused")
STORE_STATUSES = ("active", "inactive", "archived")


class Organization(BaseModel):
    """Company (tenant) domain model"""

    id: int = Field(..., description="Company ID")
    name: str = Field(..., description="Company name")
    slug: str = Field(..., description="URL slug used in /org/{slug}/api")
    plan: str = Field("free", description="free | standard | enterprise")
    status: str = Field("trial", description="active | trial | expired | cancelled | paused | past_due")
    trial_status: Optional[str] = Field(None, description="Trial state")
    trial_started_at: Optional[datetime] = Field(None, description="Trial start")
    trial_ends_at: Optional[datetime] = Field(None, description="Trial end")
    trial_extensions: int = Field(0, description="Times the trial was extended")
    billing_provider: Optional[str] = Field(None, description="zoho | recurly")
    billing_customer_id: Optional[str] = None
    billing_subscription_id: Optional[str] = None
    max_users: Optional[int] = Field(None, description="Override of plan user limit")
    max_vendors: Optional[int] = Field(None, description="Override of plan vendor limit")
    max_orders: Optional[int] = Field(None, description="Override of plan order limit")
    email: Optional[str] = None
    phone: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict, description="Free-form org settings")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # From list queries
    user_count: Optional[int] = Field(None, description="Users in the company")
    store_count: Optional[int] = Field(None, description="Stores in the company")

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump()


class Store(BaseModel):
    """Store (location) domain model"""

    id: int = Field(..., description="Store ID")
    company_id: int = Field(..., description="Owning company")
    name: str = Field(..., description="Store name")
    slug: str = Field(..., description="Slug, unique per company")
    short_name: Optional[str] = Field(None, description="Up to 8 uppercase alphanumerics")
    store_number: str = Field(..., description="Zero padded number, unique per company")
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    ffl_number: Optional[str] = Field(None, description="Federal Firearms License")
    timezone: str = Field("America/New_York", description="IANA time zone")
    currency: str = Field("USD", description="ISO currency")
    status: str = Field("active", description="active | inactive | archived")
    is_active: bool = Field(True, description="False when archived or inactive")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump()


class PlanSettings(BaseModel):
    """Plan catalog entry; NULL limits mean unlimited"""

    id: Optional[int] = None
    plan_id: str = Field(..., description="free | standard | enterprise | custom id")
    plan_name: str = Field(..., description="Display name")
    trial_length_days: Optional[int] = Field(14, ge=0)
    plan_length_days: Optional[int] = Field(30, ge=0)
    max_users: Optional[int] = Field(None, ge=0)
    max_vendors: Optional[int] = Field(None, ge=0)
    max_orders: Optional[int] = Field(None, ge=0)
    online_ordering: bool = False
    asn_processing: bool = False
    webhook_export: bool = False
    advanced_analytics: bool = False
    api_access: bool = False
    is_active: bool = True
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump()
