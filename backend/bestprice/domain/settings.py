"""
Admin Settings Domain Model

Platform-wide configuration stored as a single row.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

MASK = "••••••••"

# Never returned in clear text by the API
SECRET_FIELDS = (
    "sendgrid_api_key",
    "smtp2go_api_key",
    "smtp_password",
    "zoho_billing_client_secret",
    "zoho_billing_refresh_token",
)


def is_masked(value) -> bool:
    """Masked placeholders come back from the UI unchanged when a secret is not edited"""
    return isinstance(value, str) and value.strip().startswith("•")


class AdminSettings(BaseModel):
    """Platform settings (email providers, branding, billing, registration)"""

    id: Optional[int] = Field(None, description="Row ID")
    sendgrid_api_key: Optional[str] = Field(None, description="SendGrid API key")
    smtp2go_api_key: Optional[str] = Field(None, description="SMTP2GO API key")
    smtp_host: Optional[str] = Field(None, description="SMTP host")
    smtp_port: Optional[int] = Field(None, description="SMTP port", ge=1, le=65535)
    smtp_user: Optional[str] = Field(None, description="SMTP user")
    smtp_password: Optional[str] = Field(None, description="SMTP password")
    system_email: Optional[str] = Field(None, description="Sender address for system email")
    system_time_zone: str = Field("America/New_York", description="IANA time zone for schedules")
    maintenance_mode: bool = Field(False, description="Block non-admin logins")
    registration_enabled: bool = Field(True, description="Allow new organizations to sign up")
    max_organizations: int = Field(1000, description="Cap on organizations", ge=0)
    support_email: Optional[str] = Field(None, description="Support contact")
    company_name: Optional[str] = Field(None, description="Legal company name")
    brand_name: Optional[str] = Field(None, description="Product brand name")
    support_domain: Optional[str] = Field(None, description="Support site domain")
    logo_url: Optional[str] = Field(None, description="Uploaded logo URL")
    zoho_billing_client_id: Optional[str] = Field(None, description="Zoho Billing OAuth client id")
    zoho_billing_client_secret: Optional[str] = Field(None, description="Zoho Billing OAuth client secret")
    zoho_billing_refresh_token: Optional[str] = Field(None, description="Zoho Billing refresh token")
    zoho_billing_org_id: Optional[str] = Field(None, description="Zoho Billing organization id")
    zoho_billing_base_url: Optional[str] = Field(None, description="Zoho Billing API base URL")
    updated_at: Optional[datetime] = Field(None, description="Last update")

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self, mask_secrets: bool = True) -> dict:
        data = self.model_dump()
        if mask_secrets:
            for field in SECRET_FIELDS:
                if data.get(field):
                    data[field] = MASK
        return data
