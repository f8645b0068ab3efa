"""
Org Vendors API - vendor connections of an organization

Endpoints:
- GET  /org/{slug}/api/vendors                              - Vendors with connection status
- GET  /org/{slug}/api/vendors/{vendor}/credentials         - Redacted store credentials + schema
- POST /org/{slug}/api/vendors/{vendor}/credentials         - Store credentials
- POST /org/{slug}/api/vendors/{vendor}/test-connection     - Test store credentials
- POST /org/{slug}/api/vendors/{vendor}/toggle-enabled      - Enable/disable (plan limited)
- GET  /org/{slug}/api/supported-vendors                    - Enabled catalog vendors
- GET  /org/{slug}/api/vendor-credentials/bill-hicks        - Bill Hicks store credentials
- POST /org/{slug}/api/vendor-credentials/bill-hicks        - Save Bill Hicks store credentials
- GET  /org/{slug}/api/vendor-credentials/bill-hicks/stats  - Bill Hicks catalog + connection stats
- POST /org/{slug}/api/vendor-credentials/bill-hicks/test-connection

A vendor with no credential row for the company counts as a new vendor
connection: saving its first credentials or enabling it goes through the
plan's add_vendor check.

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from bestprice.api.common import http_error, get_organization
from bestprice.core.auth import TokenUser, require_org_manager
from bestprice.domain.organization import Organization
from bestprice.repositories.credentials_repository import CompanyVendorCredentialsRepository
from bestprice.repositories.supported_vendor_repository import SupportedVendorRepository
from bestprice.services.bill_hicks_sync_service import BillHicksSyncService
from bestprice.services.credential_vault_service import CredentialVaultService
from bestprice.services.plan_enforcement_service import PlanEnforcementService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/org/{slug}/api", tags=["Org Vendors"])

vendor_repository = SupportedVendorRepository()
credentials_repository = CompanyVendorCredentialsRepository()
vault = CredentialVaultService(vendor_repository, credentials_repository)
plan_service = PlanEnforcementService()
bill_hicks_service = BillHicksSyncService(vendor_repository=vendor_repository, vault=vault,
                                          credentials_repository=credentials_repository)


class ToggleEnabled(BaseModel):
    enabled: bool


def _vendor_credentials_view(vendor_identifier, company: Organization) -> Dict[str, Any]:
    vendor = vault.get_vendor(vendor_identifier)
    record = credentials_repository.find(company.id, vendor.id)
    credentials = vault.get_redacted_credentials(vendor.id, "store", company.id)
    return {
        "vendor_id": vendor.id,
        "vendor_name": vendor.name,
        "schema": [f.model_dump() for f in vault.get_schema_fields(vendor)["store"]],
        "credentials": credentials or {},
        "configured": bool(credentials),
        "connection_status": record.connection_status if record else "not_tested",
        "last_connection_test": record.last_connection_test if record else None,
        "connection_error": record.connection_error if record else None,
        "is_enabled": record.is_enabled if record else False,
    }


def _save_credentials(vendor_identifier, company: Organization, credentials: Dict[str, Any]):
    vendor = vault.get_vendor(vendor_identifier)
    if credentials_repository.find(company.id, vendor.id) is None:
        plan_service.enforce(company, "add_vendor")
    vault.store_company_credentials(vendor.id, company.id, credentials)
    return _vendor_credentials_view(vendor.id, company)


# ============================================================================
# Vendors
# ============================================================================

@router.get("/vendors")
async def list_org_vendors(company: Organization = Depends(get_organization)):
    try:
        records = {r.supported_vendor_id: r for r in credentials_repository.find_all_for_company(company.id)}
        data = []
        for vendor in vendor_repository.find_all(enabled_only=True):
            record = records.get(vendor.id)
            entry = vendor.to_dict()
            entry.update({
                "is_enabled": record.is_enabled if record else False,
                "credentials_configured": bool(record and record.credentials),
                "connection_status": record.connection_status if record else "not_configured",
                "last_connection_test": record.last_connection_test if record else None,
                "credentials": vault.get_redacted_credentials(vendor.id, "store", company.id) or {},
            })
            data.append(entry)
        return {"status": "success", "count": len(data), "data": data}
    except Exception as e:
        raise http_error(e, "fetching vendors")


@router.get("/supported-vendors")
async def list_enabled_supported_vendors(company: Organization = Depends(get_organization)):
    try:
        vendors = vendor_repository.find_all(enabled_only=True)
        return {"status": "success", "count": len(vendors), "data": [v.to_dict() for v in vendors]}
    except Exception as e:
        raise http_error(e, "fetching supported vendors")


@router.get("/vendors/{vendor}/credentials")
async def get_org_vendor_credentials(vendor: str, company: Organization = Depends(get_organization)):
    try:
        return {"status": "success", "data": _vendor_credentials_view(vendor, company)}
    except Exception as e:
        raise http_error(e, "fetching vendor credentials")


@router.post("/vendors/{vendor}/credentials")
async def save_org_vendor_credentials(
    vendor: str,
    credentials: Dict[str, Any] = Body(...),
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        return {"status": "success", "message": "Credentials saved", "data": _save_credentials(vendor, company, credentials)}
    except Exception as e:
        raise http_error(e, "saving vendor credentials")


@router.post("/vendors/{vendor}/test-connection")
async def test_org_vendor_connection(vendor: str, company: Organization = Depends(get_organization)):
    try:
        result = await vault.test_connection(vendor, "store", company.id)
        return {"status": "success" if result["success"] else "error", "data": result}
    except Exception as e:
        raise http_error(e, "testing vendor connection")


@router.post("/vendors/{vendor}/toggle-enabled")
async def toggle_org_vendor(
    vendor: str,
    payload: ToggleEnabled,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        record_vendor = vault.get_vendor(vendor)
        record = credentials_repository.find(company.id, record_vendor.id)
        currently_enabled = bool(record and record.is_enabled)

        if payload.enabled and not currently_enabled:
            plan_service.enforce(company, "add_vendor")

        credentials_repository.update_status(company.id, record_vendor.id, {"is_enabled": payload.enabled})
        logger.info(f"{company.slug}: {record_vendor.name} {'enabled' if payload.enabled else 'disabled'}")
        return {"status": "success", "data": {"vendor_id": record_vendor.id, "is_enabled": payload.enabled}}
    except Exception as e:
        raise http_error(e, "toggling vendor")


# ============================================================================
# Bill Hicks store credentials
# ============================================================================

@router.get("/vendor-credentials/bill-hicks")
async def get_bill_hicks_credentials(company: Organization = Depends(get_organization)):
    try:
        vendor = bill_hicks_service.get_vendor()
        return {"status": "success", "data": _vendor_credentials_view(vendor.id, company)}
    except Exception as e:
        raise http_error(e, "fetching Bill Hicks credentials")


@router.post("/vendor-credentials/bill-hicks")
async def save_bill_hicks_credentials(
    credentials: Dict[str, Any] = Body(...),
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        vendor = bill_hicks_service.get_vendor()
        return {"status": "success", "message": "Bill Hicks credentials saved",
                "data": _save_credentials(vendor.id, company, credentials)}
    except Exception as e:
        raise http_error(e, "saving Bill Hicks credentials")


@router.get("/vendor-credentials/bill-hicks/stats")
async def get_bill_hicks_stats(company: Organization = Depends(get_organization)):
    try:
        return {"status": "success", "data": bill_hicks_service.get_company_stats(company.id)}
    except Exception as e:
        raise http_error(e, "fetching Bill Hicks stats")


@router.post("/vendor-credentials/bill-hicks/test-connection")
async def test_bill_hicks_connection(company: Organization = Depends(get_organization)):
    try:
        result = await bill_hicks_service.test_company_connection(company.id)
        return {"status": "success" if result["success"] else "error", "data": result}
    except Exception as e:
        raise http_error(e, "testing Bill Hicks connection")
