"""
Vendor Domain Models

Supported vendors (distributors), their credential schema and the
company-level credential record.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime

API_TYPES = ("rest_api", "soap", "ftp", "excel")
ADMIN_CONNECTION_STATUSES = ("not_configured", "online", "offline", "error", "pending_test")
CONNECTION_STATUSES = ("not_tested", "online", "offline", "error")


class CredentialField(BaseModel):
    """One input of a vendor's credential form"""

    name: str = Field(..., description="Field key")
    label: str = Field("", description="Form label")
    type: str = Field("text", description="text | password | email | url | number")
    required: bool = Field(False, description="Must be non-blank")
    aliases: List[str] = Field(default_factory=list, description="Alternate keys for the same value")
    placeholder: Optional[str] = Field(None, description="Form placeholder")
    description: Optional[str] = Field(None, description="Help text")

    @property
    def is_secret(self) -> bool:
        if self.type == "password":
            return True
        lowered = self.name.lower()
        return any(word in lowered for word in ("password", "secret", "token", "key"))


class VendorFeatures(BaseModel):
    electronicOrdering: bool = False
    realTimePricing: bool = False
    inventorySync: bool = False
    productCatalog: bool = False


class SupportedVendor(BaseModel):
    """
    Supported vendor domain model

    Core identity fields are declared; the vendor-specific schedule and
    sync status columns (bill_hicks_*, chattanooga_*, sports_south_*,
    lipseys_*) are carried as extra attributes.
    """

    id: int = Field(..., description="Vendor ID")
    name: str = Field(..., description="Display name, unique")
    vendor_short_code: Optional[str] = Field(None, description="Slug, e.g. 'bill-hicks'")
    description: Optional[str] = Field(None, description="Description")
    api_type: str = Field("rest_api", description="rest_api | soap | ftp | excel")
    vendor_type: Optional[str] = Field("distributor", description="Vendor type")
    name_aliases: List[str] = Field(default_factory=list, description="Other names the vendor goes by")
    credential_fields: List[CredentialField] = Field(default_factory=list, description="Credential form schema")
    features: VendorFeatures = Field(default_factory=VendorFeatures, description="Capability flags")
    logo_url: Optional[str] = Field(None, description="Logo URL")
    is_enabled: bool = Field(True, description="Visible to organizations")
    sort_order: int = Field(0, description="Display order")
    product_record_priority: Optional[int] = Field(None, description="1 = highest", ge=1)
    admin_connection_status: Optional[str] = Field("not_configured", description="Admin credential status")
    last_catalog_sync: Optional[datetime] = Field(None, description="Last catalog sync")
    catalog_sync_status: Optional[str] = Field(None, description="Last catalog sync status")
    catalog_sync_error: Optional[str] = Field(None, description="Last catalog sync error")
    created_at: Optional[datetime] = Field(None, description="Created")
    updated_at: Optional[datetime] = Field(None, description="Updated")

    model_config = ConfigDict(from_attributes=True, extra="allow")

    def matches(self, identifier: str) -> bool:
        """True when identifier is this vendor's id, short code, name or alias (case-insensitive)"""
        key = (identifier or "").strip().lower()
        if not key:
            return False
        if key == str(self.id):
            return True
        candidates = [self.name, self.vendor_short_code or ""] + list(self.name_aliases or [])
        return key in [c.strip().lower() for c in candidates if c]

    def to_dict(self) -> dict:
        data = self.model_dump()
        # admin credentials are never returned through this model
        data.pop("admin_credentials", None)
        return data


class CompanyVendorCredentials(BaseModel):
    """Company (store-level) credentials and connection state for one vendor"""

    id: Optional[int] = Field(None, description="Row ID")
    company_id: int = Field(..., description="Company ID")
    supported_vendor_id: int = Field(..., description="Vendor ID")
    credentials: Dict[str, Any] = Field(default_factory=dict, description="Raw credential values")
    is_enabled: bool = Field(True, description="Vendor enabled for this company")
    connection_status: str = Field("not_tested", description="not_tested | online | offline | error")
    last_connection_test: Optional[datetime] = Field(None, description="Last connection test")
    connection_error: Optional[str] = Field(None, description="Last connection error")
    catalog_sync_enabled: bool = False
    inventory_sync_enabled: bool = False
    last_catalog_sync: Optional[datetime] = None
    catalog_sync_status: Optional[str] = None
    catalog_sync_error: Optional[str] = None
    catalog_records_updated: Optional[int] = 0
    last_inventory_sync: Optional[datetime] = None
    inventory_sync_status: Optional[str] = None
    inventory_sync_error: Optional[str] = None
    inventory_records_updated: Optional[int] = 0

    model_config = ConfigDict(from_attributes=True)
