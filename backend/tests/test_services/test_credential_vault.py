"""
Unit tests for CredentialVaultService

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock, AsyncMock, patch

from bestprice.domain.settings import MASK
from bestprice.domain.vendor import CredentialField, SupportedVendor, CompanyVendorCredentials
from bestprice.services.credential_vault_service import (
    CredentialVaultService,
    merge_credentials,
    find_credential_value,
    validate_credentials,
    has_placeholders,
    determine_auth_method,
)


LIPSEYS = SupportedVendor(
    id=1,
    name="Lipsey's",
    vendor_short_code="lipseys",
    credential_fields=[
        CredentialField(name="email", label="Email", type="email", required=True),
        CredentialField(name="password", label="Password", type="password", required=True),
    ],
)

BILL_HICKS = SupportedVendor(
    id=4,
    name="Bill Hicks & Co.",
    vendor_short_code="bill-hicks",
    api_type="ftp",
    credential_fields=[
        CredentialField(name="ftpHost", label="FTP Host", required=True),
        CredentialField(name="ftpUsername", label="FTP Username", required=True),
        CredentialField(name="ftpPassword", label="FTP Password", type="password", required=True),
    ],
)

CHATTANOOGA = SupportedVendor(
    id=2,
    name="Chattanooga Shooting Supplies",
    vendor_short_code="chattanooga",
    credential_fields=[
        CredentialField(name="accountNumber", label="Account Number", required=True),
        CredentialField(name="sid", label="SID", required=True),
        CredentialField(name="token", label="Token", type="password", required=True),
    ],
)


@pytest.fixture
def vendors():
    repo = MagicMock()
    repo.find_by_identifier.return_value = LIPSEYS
    repo.get_admin_credentials.return_value = {"email": "buyer@example.com", "password": "s3cret"}
    return repo


@pytest.fixture
def credentials():
    repo = MagicMock()
    repo.find.return_value = None
    return repo


@pytest.fixture
def vault(vendors, credentials):
    return CredentialVaultService(vendors, credentials)


class TestCredentialHelpers:

    def test_masked_and_blank_values_keep_stored(self):
        merged = merge_credentials(
            {"password": "old", "email": "a@example.com"},
            {"password": MASK, "email": "b@example.com", "token": "  "}
        )
        assert merged == {"password": "old", "email": "b@example.com"}

    def test_find_by_case_variant(self):
        field = CredentialField(name="userName")
        assert find_credential_value({"user_name": "bob"}, field) == "bob"
        assert find_credential_value({"USERNAME": "bob"}, field) == "bob"

    def test_find_by_alias(self):
        field = CredentialField(name="email", aliases=["userName"])
        assert find_credential_value({"userName": "bob"}, field) == "bob"
        assert find_credential_value({"email": ""}, field) is None

    def test_validate_reports_label(self):
        with pytest.raises(ValueError, match="Required field missing: Password"):
            validate_credentials({"email": "a@example.com"}, LIPSEYS.credential_fields)

    def test_placeholders(self):
        assert has_placeholders({"password": "PLACEHOLDER"}) is True
        assert has_placeholders({"token": "NEEDS_UPDATE_token"}) is True
        assert has_placeholders({"password": "real"}) is False

    def test_auth_method(self):
        assert determine_auth_method(LIPSEYS.credential_fields) == "custom"
        assert determine_auth_method([CredentialField(name="apiKey")]) == "apiKey"
        assert determine_auth_method([CredentialField(name="username"), CredentialField(name="password")]) == "basic"


class TestSchema:

    def test_bill_hicks_names_per_level(self, vault, vendors):
        vendors.find_by_identifier.return_value = BILL_HICKS

        schema = vault.get_vendor_schema("bill-hicks")

        assert [f["name"] for f in schema["admin_credentials"]] == ["ftpServer", "ftpUsername", "ftpPassword"]
        assert [f["name"] for f in schema["store_credentials"]] == ["ftp_server", "ftp_username", "ftp_password"]

    def test_chattanooga_store_fields(self, vault, vendors):
        vendors.find_by_identifier.return_value = CHATTANOOGA

        schema = vault.get_vendor_schema("chattanooga")

        assert [f["name"] for f in schema["store_credentials"]] == ["sid", "token"]

    def test_unknown_vendor(self, vault, vendors):
        vendors.find_by_identifier.return_value = None
        with pytest.raises(LookupError):
            vault.get_vendor_schema("acme")


class TestStoreAndRead:

    def test_store_admin_keeps_masked_secret(self, vault, vendors):
        merged = vault.store_admin_credentials("lipseys", {"email": "new@example.com", "password": MASK})

        assert merged["password"] == "s3cret"
        vendors.save_admin_credentials.assert_called_once()
        assert vendors.save_admin_credentials.call_args[1]["connection_status"] == "pending_test"

    def test_store_company_requires_fields(self, vault, credentials):
        with pytest.raises(ValueError, match="Required field missing: Email"):
            vault.store_company_credentials("lipseys", 3, {"password": "x"})
        credentials.save_credentials.assert_not_called()

    def test_admin_placeholders_are_ignored(self, vault, vendors):
        vendors.get_admin_credentials.return_value = {"email": "PLACEHOLDER", "password": "PLACEHOLDER"}
        assert vault.get_admin_credentials("lipseys") is None

    def test_aliases_filled_on_read(self, vault, credentials):
        credentials.find.return_value = CompanyVendorCredentials(
            company_id=3, supported_vendor_id=1, credentials={"userName": "buyer@example.com", "password": "p"}
        )
        stored = vault.get_company_credentials("lipseys", 3)
        assert stored["email"] == "buyer@example.com"

    def test_redacted_masks_secrets(self, vault):
        redacted = vault.get_redacted_credentials("lipseys", "admin")
        assert redacted == {"email": "buyer@example.com", "password": MASK}

    def test_redacted_store_without_company(self, vault):
        assert vault.get_redacted_credentials("lipseys", "store") is None


class TestConnectionTest:

    @pytest.mark.asyncio
    async def test_admin_success_sets_online(self, vault, vendors):
        connector = MagicMock()
        connector.test_connection = AsyncMock(return_value={"success": True, "message": "Connected"})

        with patch("bestprice.services.credential_vault_service.create_connector", return_value=connector):
            result = await vault.test_connection("lipseys", "admin")

        assert result["success"] is True
        vendors.set_admin_connection_status.assert_called_once_with(1, "online")

    @pytest.mark.asyncio
    async def test_store_failure_records_error(self, vault, credentials):
        credentials.find.return_value = CompanyVendorCredentials(
            company_id=3, supported_vendor_id=1, credentials={"email": "a@example.com", "password": "bad"}
        )
        connector = MagicMock()
        connector.test_connection = AsyncMock(side_effect=RuntimeError("timeout"))

        with patch("bestprice.services.credential_vault_service.create_connector", return_value=connector):
            result = await vault.test_connection("lipseys", "store", company_id=3)

        assert result == {"success": False, "message": "Connection test failed: timeout"}
        status = credentials.update_status.call_args[0][2]
        assert status["connection_status"] == "error"
        assert status["connection_error"] == "Connection test failed: timeout"

    @pytest.mark.asyncio
    async def test_no_credentials(self, vault, vendors):
        vendors.get_admin_credentials.return_value = None
        result = await vault.test_connection("lipseys", "admin")
        assert result == {"success": False, "message": "No credentials found"}

    @pytest.mark.asyncio
    async def test_store_level_requires_company(self, vault):
        with pytest.raises(ValueError):
            await vault.test_connection("lipseys", "store")
