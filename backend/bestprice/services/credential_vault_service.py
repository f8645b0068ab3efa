"""
Credential Vault Service - vendor credentials at admin and company level

Admin credentials live in supported_vendors.admin_credentials and are used
by the platform-wide catalog syncs. Company credentials live in
company_vendor_credentials, one row per company and vendor.

Credentials are stored as plain JSON; secrets are masked (••••••••) in
every API response, and a masked value sent back by the UI keeps the stored
value.

Author: TM3
Date: 2025-10-17
"""
import re
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

from bestprice.domain.settings import MASK, is_masked
from bestprice.domain.vendor import CredentialField, SupportedVendor
from bestprice.repositories.supported_vendor_repository import SupportedVendorRepository
from bestprice.repositories.credentials_repository import CompanyVendorCredentialsRepository
from bestprice.services.vendor_registry import (
    create_connector, vendor_kind, BILL_HICKS, CHATTANOOGA, LIPSEYS, SPORTS_SOUTH
)

logger = logging.getLogger(__name__)

PLACEHOLDER_VALUES = ("PLACEHOLDER", "CONFIGURE_IN_ADMIN")
ADMIN_ONLY_FIELDS = ("adminapikey", "masterkey", "systemtoken")

# Bidirectional key pairs applied on read, per vendor
VENDOR_ALIAS_PAIRS = {
    LIPSEYS: [("userName", "email")],
    SPORTS_SOUTH: [("userName", "user_name"), ("customerNumber", "customer_number")],
    CHATTANOOGA: [("password", "chattanooga_password"), ("accountNumber", "account_number")],
    BILL_HICKS: [
        ("ftpServer", "ftp_server"),
        ("ftpServer", "ftpHost"),
        ("ftpUsername", "ftp_username"),
        ("ftpPassword", "ftp_password"),
        ("ftpPort", "ftp_port"),
        ("ftpBasePath", "ftp_base_path"),
    ],
}

BILL_HICKS_FIELD_NAMES = {
    # normalized -> (admin name, store name)
    "ftphost": ("ftpServer", "ftp_server"),
    "ftpserver": ("ftpServer", "ftp_server"),
    "ftpusername": ("ftpUsername", "ftp_username"),
    "ftppassword": ("ftpPassword", "ftp_password"),
    "ftpport": ("ftpPort", "ftp_port"),
    "ftpbasepath": ("ftpBasePath", "ftp_base_path"),
}


def _normalize_key(name: str) -> str:
    return re.sub(r'[_\s]', '', name.lower())


def camel_to_snake(name: str) -> str:
    return re.sub(r'[A-Z]', lambda m: f"_{m.group(0).lower()}", name)


def snake_to_camel(name: str) -> str:
    return re.sub(r'_([a-z])', lambda m: m.group(1).upper(), name.lower())


def _is_blank(value) -> bool:
    return value is None or str(value).strip() == ""


def determine_auth_method(fields: List[CredentialField]) -> str:
    names = [f.name.lower() for f in fields]
    if "apikey" in names or "api_key" in names:
        return "apiKey"
    if "clientid" in names and "clientsecret" in names:
        return "oauth2"
    if "username" in names and "password" in names:
        return "basic"
    return "custom"


def merge_credentials(existing: Optional[Dict[str, Any]], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """
    Overlay incoming values on the stored ones

    A missing, empty or masked incoming value keeps the stored value.
    """
    merged = dict(existing or {})
    for key, value in (incoming or {}).items():
        if _is_blank(value) or is_masked(value):
            continue
        merged[key] = value
    return merged


def find_credential_value(credentials: Dict[str, Any], field: CredentialField):
    """Look a field up under its name, case variants, a loose match, then its aliases"""
    name = field.name
    snake = name if "_" in name else camel_to_snake(name)
    camel = snake_to_camel(name) if "_" in name else name

    for key in (name, snake, camel):
        if not _is_blank(credentials.get(key)):
            return credentials[key]

    wanted = _normalize_key(name)
    for key, value in credentials.items():
        if _normalize_key(key) == wanted and not _is_blank(value):
            return value

    for alias in field.aliases:
        if not _is_blank(credentials.get(alias)):
            return credentials[alias]
    return None


def validate_credentials(credentials: Dict[str, Any], fields: List[CredentialField]):
    """
    Raises:
        ValueError: "Required field missing: {label}" for the first missing field
    """
    for field in fields:
        if field.required and find_credential_value(credentials, field) is None:
            raise ValueError(f"Required field missing: {field.label or field.name}")


def has_placeholders(credentials: Dict[str, Any]) -> bool:
    for value in credentials.values():
        if isinstance(value, str) and ("NEEDS_UPDATE" in value or value in PLACEHOLDER_VALUES):
            return True
    return False


class CredentialVaultService:
    """Stores, reads, redacts and tests vendor credentials"""

    def __init__(
        self,
        vendor_repository: Optional[SupportedVendorRepository] = None,
        credentials_repository: Optional[CompanyVendorCredentialsRepository] = None
    ):
        self.vendor_repository = vendor_repository or SupportedVendorRepository()
        self.credentials_repository = credentials_repository or CompanyVendorCredentialsRepository()

    def get_vendor(self, identifier) -> SupportedVendor:
        """
        Raises:
            LookupError: unknown vendor
        """
        vendor = self.vendor_repository.find_by_identifier(str(identifier))
        if not vendor:
            raise LookupError(f"Vendor not found: {identifier}")
        return vendor

    # =========================================================================
    # Schema
    # =========================================================================

    def get_schema_fields(self, vendor: SupportedVendor) -> Dict[str, List[CredentialField]]:
        admin_fields = list(vendor.credential_fields)
        store_fields = [f for f in admin_fields if f.name.lower() not in ADMIN_ONLY_FIELDS]
        kind = vendor_kind(vendor)

        if kind == CHATTANOOGA:
            store_fields = [
                CredentialField(name="sid", label="SID", type="text", required=True),
                CredentialField(name="token", label="Token", type="password", required=True),
            ]
        elif kind == BILL_HICKS:
            def rename(fields, index):
                renamed = []
                for f in fields:
                    names = BILL_HICKS_FIELD_NAMES.get(_normalize_key(f.name))
                    renamed.append(f.model_copy(update={"name": names[index]}) if names else f)
                return renamed
            admin_fields = rename(admin_fields, 0)
            store_fields = rename(store_fields, 1)

        return {"admin": admin_fields, "store": store_fields}

    def get_vendor_schema(self, identifier) -> Dict[str, Any]:
        vendor = self.get_vendor(identifier)
        fields = self.get_schema_fields(vendor)
        return {
            "vendor_id": vendor.id,
            "vendor_name": vendor.name,
            "admin_credentials": [f.model_dump() for f in fields["admin"]],
            "store_credentials": [f.model_dump() for f in fields["store"]],
            "auth_method": determine_auth_method(fields["admin"]),
        }

    # =========================================================================
    # Aliases
    # =========================================================================

    def apply_field_aliases(self, vendor: SupportedVendor, credentials: Dict[str, Any]) -> Dict[str, Any]:
        """Fill in alternate key names so connectors and forms find each value"""
        result = dict(credentials)

        for first, second in VENDOR_ALIAS_PAIRS.get(vendor_kind(vendor), []):
            if not _is_blank(result.get(first)) and _is_blank(result.get(second)):
                result[second] = result[first]
            if not _is_blank(result.get(second)) and _is_blank(result.get(first)):
                result[first] = result[second]

        for field in vendor.credential_fields:
            for alias in field.aliases:
                if not _is_blank(result.get(field.name)) and _is_blank(result.get(alias)):
                    result[alias] = result[field.name]
                if not _is_blank(result.get(alias)) and _is_blank(result.get(field.name)):
                    result[field.name] = result[alias]

        return result

    # =========================================================================
    # Store / read
    # =========================================================================

    def store_admin_credentials(self, identifier, credentials: Dict[str, Any]) -> Dict[str, Any]:
        vendor = self.get_vendor(identifier)
        existing = self.vendor_repository.get_admin_credentials(vendor.id) or {}
        existing = self.apply_field_aliases(vendor, existing)

        merged = merge_credentials(existing, credentials)
        validate_credentials(merged, self.get_schema_fields(vendor)["admin"])

        self.vendor_repository.save_admin_credentials(vendor.id, merged, connection_status="pending_test")
        logger.info(f"Stored admin credentials for {vendor.name} (fields: {sorted(credentials.keys())})")
        return merged

    def store_company_credentials(self, identifier, company_id: int, credentials: Dict[str, Any]) -> Dict[str, Any]:
        vendor = self.get_vendor(identifier)
        record = self.credentials_repository.find(company_id, vendor.id)
        existing = self.apply_field_aliases(vendor, record.credentials) if record else {}

        merged = merge_credentials(existing, credentials)
        validate_credentials(merged, self.get_schema_fields(vendor)["store"])

        self.credentials_repository.save_credentials(company_id, vendor.id, merged)
        logger.info(f"Stored {vendor.name} credentials for company {company_id}")
        return merged

    def get_admin_credentials(self, identifier) -> Optional[Dict[str, Any]]:
        """Aliased admin credentials, or None when absent or still placeholders"""
        vendor = self.get_vendor(identifier)
        stored = self.vendor_repository.get_admin_credentials(vendor.id)
        if not stored:
            return None
        if has_placeholders(stored):
            logger.warning(f"Admin credentials for {vendor.name} contain placeholder values")
            return None
        return self.apply_field_aliases(vendor, stored)

    def get_company_credentials(self, identifier, company_id: int) -> Optional[Dict[str, Any]]:
        vendor = self.get_vendor(identifier)
        record = self.credentials_repository.find(company_id, vendor.id)
        if not record or not record.credentials:
            return None
        return self.apply_field_aliases(vendor, record.credentials)

    def get_redacted_credentials(self, identifier, level: str, company_id: Optional[int] = None) -> Optional[Dict[str, str]]:
        """Schema fields with secrets replaced by the mask; blank when unset"""
        vendor = self.get_vendor(identifier)

        if level == "admin":
            stored = self.vendor_repository.get_admin_credentials(vendor.id)
        else:
            if company_id is None:
                return None
            record = self.credentials_repository.find(company_id, vendor.id)
            stored = record.credentials if record else None

        if not stored:
            return None

        stored = self.apply_field_aliases(vendor, stored)
        fields = self.get_schema_fields(vendor)["admin" if level == "admin" else "store"]

        redacted = {}
        for field in fields:
            value = find_credential_value(stored, field)
            if value is None:
                redacted[field.name] = ""
            elif field.is_secret:
                redacted[field.name] = MASK
            else:
                redacted[field.name] = value
        return redacted

    # =========================================================================
    # Connection test
    # =========================================================================

    async def test_connection(self, identifier, level: str, company_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Test stored credentials against the vendor and record the outcome

        Returns:
            {"success": bool, "message": str}
        """
        vendor = self.get_vendor(identifier)

        if level == "admin":
            credentials = self.get_admin_credentials(vendor.id)
        else:
            if company_id is None:
                raise ValueError("Company ID required for store-level credential testing")
            credentials = self.get_company_credentials(vendor.id, company_id)

        if not credentials:
            return {"success": False, "message": "No credentials found"}

        try:
            connector = create_connector(vendor, credentials)
            result = await connector.test_connection()
        except ValueError as e:
            result = {"success": False, "message": str(e)}
        except Exception as e:
            logger.error(f"Connection test for {vendor.name} failed: {e}")
            result = {"success": False, "message": f"Connection test failed: {str(e)}"}

        if level == "admin":
            self.vendor_repository.set_admin_connection_status(
                vendor.id, "online" if result["success"] else "error"
            )
        else:
            self.credentials_repository.update_status(company_id, vendor.id, {
                "connection_status": "online" if result["success"] else "error",
                "last_connection_test": datetime.now(timezone.utc),
                "connection_error": None if result["success"] else result["message"],
            })

        logger.info(f"{vendor.name} {level} connection test: {'ok' if result['success'] else result['message']}")
        return result
