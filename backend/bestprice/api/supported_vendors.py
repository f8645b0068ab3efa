"""
Supported Vendors API - vendor catalog administration

Endpoints:
- GET    /api/admin/supported-vendors                 - List (sort_order, name)
- POST   /api/admin/supported-vendors                 - Create
- GET    /api/admin/supported-vendors/{id}            - Get
- PATCH  /api/admin/supported-vendors/{id}            - Partial update; a
         product_record_priority already in use is swapped
- DELETE /api/admin/supported-vendors/{id}            - Delete
- POST   /api/admin/supported-vendors/{id}/logo       - Upload vendor logo
- POST   /api/admin/supported-vendors/{id}/sync-catalog - Run the vendor's catalog sync
- GET    /api/admin/vendors/{vendor}/credentials      - Redacted admin credentials + schema
- POST   /api/admin/vendors/{vendor}/credentials      - Store admin credentials
- POST   /api/admin/vendors/{vendor}/test-connection  - Test admin credentials

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, Field

from bestprice.api.common import http_error
from bestprice.core.auth import TokenUser, require_admin
from bestprice.domain.vendor import API_TYPES
from bestprice.repositories.supported_vendor_repository import SupportedVendorRepository
from bestprice.services.credential_vault_service import CredentialVaultService
from bestprice.services.logo_storage import save_logo, delete_logo_file
from bestprice.services.vendor_priority import invalidate_vendor_priority, clear_vendor_priority_cache
from bestprice.services.vendor_registry import vendor_kind, BILL_HICKS, CHATTANOOGA, LIPSEYS, SPORTS_SOUTH
from bestprice.services.bill_hicks_sync_service import BillHicksSyncService
from bestprice.services.chattanooga_sync_service import ChattanoogaSyncService
from bestprice.services.lipseys_sync_service import LipseysSyncService
from bestprice.services.sports_south_sync_service import SportsSouthSyncService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["Supported Vendors"])

vendor_repository = SupportedVendorRepository()
vault = CredentialVaultService(vendor_repository=vendor_repository)


# ============================================================================
# Request Models
# ============================================================================

class SupportedVendorCreate(BaseModel):
    name: str = Field(..., min_length=1)
    vendor_short_code: Optional[str] = None
    description: Optional[str] = None
    api_type: str = "rest_api"
    vendor_type: Optional[str] = "distributor"
    name_aliases: List[str] = []
    credential_fields: List[Dict[str, Any]] = []
    features: Dict[str, bool] = {}
    website_url: Optional[str] = None
    is_enabled: bool = True
    sort_order: int = 0
    product_record_priority: Optional[int] = Field(None, ge=1)


class SupportedVendorUpdate(BaseModel):
    name: Optional[str] = None
    vendor_short_code: Optional[str] = None
    description: Optional[str] = None
    api_type: Optional[str] = None
    vendor_type: Optional[str] = None
    name_aliases: Optional[List[str]] = None
    credential_fields: Optional[List[Dict[str, Any]]] = None
    features: Optional[Dict[str, bool]] = None
    website_url: Optional[str] = None
    is_enabled: Optional[bool] = None
    sort_order: Optional[int] = None
    product_record_priority: Optional[int] = Field(None, ge=1)


def _check_api_type(api_type: Optional[str]):
    if api_type is not None and api_type not in API_TYPES:
        raise ValueError(f"Invalid api_type '{api_type}'. Must be one of: {', '.join(API_TYPES)}")


def _get_vendor_or_404(vendor_id: int):
    vendor = vendor_repository.find_by_id(vendor_id)
    if not vendor:
        raise HTTPException(status_code=404, detail=f"Supported vendor {vendor_id} not found")
    return vendor


# ============================================================================
# Catalog CRUD
# ============================================================================

@router.get("/supported-vendors")
async def list_supported_vendors(
    enabled_only: bool = Query(False, description="Only vendors visible to organizations"),
    user: TokenUser = Depends(require_admin)
):
    try:
        vendors = vendor_repository.find_all(enabled_only=enabled_only)
        return {"status": "success", "count": len(vendors), "data": [v.to_dict() for v in vendors]}
    except Exception as e:
        raise http_error(e, "fetching supported vendors")


@router.post("/supported-vendors", status_code=201)
async def create_supported_vendor(payload: SupportedVendorCreate, user: TokenUser = Depends(require_admin)):
    try:
        _check_api_type(payload.api_type)
        fields = payload.model_dump()
        priority = fields.pop("product_record_priority")
        vendor = vendor_repository.create(fields)
        if priority is not None:
            vendor = vendor_repository.set_record_priority(vendor.id, priority)
            clear_vendor_priority_cache()
        logger.info(f"Created supported vendor {vendor.name} (id {vendor.id})")
        return {"status": "success", "data": vendor.to_dict()}
    except Exception as e:
        raise http_error(e, "creating supported vendor")


@router.get("/supported-vendors/{vendor_id}")
async def get_supported_vendor(vendor_id: int, user: TokenUser = Depends(require_admin)):
    try:
        return {"status": "success", "data": _get_vendor_or_404(vendor_id).to_dict()}
    except Exception as e:
        raise http_error(e, "fetching supported vendor")


@router.patch("/supported-vendors/{vendor_id}")
async def update_supported_vendor(
    vendor_id: int,
    payload: SupportedVendorUpdate,
    user: TokenUser = Depends(require_admin)
):
    try:
        current = _get_vendor_or_404(vendor_id)
        _check_api_type(payload.api_type)

        fields = payload.model_dump(exclude_unset=True)
        priority = fields.pop("product_record_priority", None)

        vendor = vendor_repository.update(vendor_id, fields) if fields else current
        if priority is not None and priority != current.product_record_priority:
            vendor = vendor_repository.set_record_priority(vendor_id, priority)
            # the swapped vendor changed too
            clear_vendor_priority_cache()
        else:
            invalidate_vendor_priority(current.name)
            if current.vendor_short_code:
                invalidate_vendor_priority(current.vendor_short_code)

        return {"status": "success", "data": vendor.to_dict()}
    except Exception as e:
        raise http_error(e, "updating supported vendor")


@router.delete("/supported-vendors/{vendor_id}")
async def delete_supported_vendor(vendor_id: int, user: TokenUser = Depends(require_admin)):
    try:
        vendor = _get_vendor_or_404(vendor_id)
        vendor_repository.delete(vendor_id)
        delete_logo_file(vendor.logo_url)
        clear_vendor_priority_cache()
        logger.info(f"Deleted supported vendor {vendor.name} (id {vendor_id})")
        return {"status": "success", "message": f"Vendor {vendor.name} deleted"}
    except Exception as e:
        raise http_error(e, "deleting supported vendor")


@router.post("/supported-vendors/{vendor_id}/logo")
async def upload_vendor_logo(
    vendor_id: int,
    logo: UploadFile = File(...),
    user: TokenUser = Depends(require_admin)
):
    try:
        vendor = _get_vendor_or_404(vendor_id)
        content = await logo.read()
        logo_url = save_logo(content, logo.content_type, prefix=f"vendor-{vendor_id}")
        vendor_repository.update(vendor_id, {"logo_url": logo_url})
        delete_logo_file(vendor.logo_url)
        return {"status": "success", "data": {"logo_url": logo_url}}
    except Exception as e:
        raise http_error(e, "uploading vendor logo")


# ============================================================================
# Catalog sync trigger
# ============================================================================

def _catalog_runner(vendor):
    kind = vendor_kind(vendor)
    if kind == BILL_HICKS:
        return BillHicksSyncService(vendor_repository=vendor_repository).run_catalog_sync
    if kind == CHATTANOOGA:
        return ChattanoogaSyncService(vendor_repository=vendor_repository).run_sync
    if kind == LIPSEYS:
        return LipseysSyncService(vendor_repository=vendor_repository).run_catalog_sync
    if kind == SPORTS_SOUTH:
        return SportsSouthSyncService(vendor_repository=vendor_repository).run_incremental_sync
    raise ValueError(f"Catalog sync is not supported for {vendor.name}")


@router.post("/supported-vendors/{vendor_id}/sync-catalog")
async def sync_vendor_catalog(
    vendor_id: int,
    background_tasks: BackgroundTasks,
    run_in_background: bool = Query(False, description="Return immediately and sync in background"),
    user: TokenUser = Depends(require_admin)
):
    try:
        vendor = _get_vendor_or_404(vendor_id)
        runner = _catalog_runner(vendor)

        if run_in_background:
            background_tasks.add_task(runner)
            return {"status": "success", "message": f"{vendor.name} catalog sync started in background"}

        result = await runner()
        return {"status": "success" if result.success else "error", "data": result.to_dict()}
    except Exception as e:
        raise http_error(e, "starting catalog sync")


# ============================================================================
# Admin credentials
# ============================================================================

@router.get("/vendors/{vendor}/credentials")
async def get_admin_credentials(vendor: str, user: TokenUser = Depends(require_admin)):
    try:
        schema = vault.get_vendor_schema(vendor)
        credentials = vault.get_redacted_credentials(vendor, "admin")
        record = vault.get_vendor(vendor)
        return {
            "status": "success",
            "data": {
                "schema": schema,
                "credentials": credentials or {},
                "configured": credentials is not None,
                "connection_status": record.admin_connection_status,
            }
        }
    except Exception as e:
        raise http_error(e, "fetching admin credentials")


@router.post("/vendors/{vendor}/credentials")
async def store_admin_credentials(
    vendor: str,
    credentials: Dict[str, Any] = Body(...),
    user: TokenUser = Depends(require_admin)
):
    try:
        vault.store_admin_credentials(vendor, credentials)
        return {
            "status": "success",
            "message": "Admin credentials saved",
            "data": vault.get_redacted_credentials(vendor, "admin"),
        }
    except Exception as e:
        raise http_error(e, "saving admin credentials")


@router.post("/vendors/{vendor}/test-connection")
async def test_admin_connection(vendor: str, user: TokenUser = Depends(require_admin)):
    try:
        result = await vault.test_connection(vendor, "admin")
        return {"status": "success" if result["success"] else "error", "data": result}
    except Exception as e:
        raise http_error(e, "testing admin connection")
