"""
Stores API - store locations of an organization

Endpoints (prefix /org/{slug}/api/stores):
- GET    /                        - List (status filter; archived hidden unless include_archived)
- POST   /                        - Create (slug, store_number, short_name derived when absent)
- GET    /{id}                    - Get
- PATCH  /{id}                    - Update
- DELETE /{id}                    - Delete
- POST   /{id}/archive            - Archive
- POST   /{id}/unarchive          - Unarchive
- PATCH  /{id}/status             - Set status
- GET    /{id}/users              - Users assigned to the store
- POST   /{id}/users              - Assign a user
- DELETE /{id}/users/{user_id}    - Remove a user

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from bestprice.api.common import http_error, get_organization
from bestprice.core.auth import TokenUser, require_org_manager
from bestprice.domain.organization import Organization
from bestprice.repositories.store_repository import StoreRepository
from bestprice.repositories.user_repository import UserRepository
from bestprice.services.store_service import StoreService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/org/{slug}/api/stores", tags=["Stores"])

store_repository = StoreRepository()
user_repository = UserRepository()
store_service = StoreService(store_repository)


# ============================================================================
# Request Models
# ============================================================================

class StoreFields(BaseModel):
    slug: Optional[str] = None
    short_name: Optional[str] = Field(None, max_length=8)
    store_number: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    ffl_number: Optional[str] = None
    timezone: Optional[str] = None
    currency: Optional[str] = None
    status: Optional[str] = None


class StoreCreate(StoreFields):
    name: str = Field(..., min_length=1)


class StoreUpdate(StoreFields):
    name: Optional[str] = None


class StoreStatusUpdate(BaseModel):
    status: str


class StoreUserAssign(BaseModel):
    user_id: int


# ============================================================================
# Stores
# ============================================================================

@router.get("")
async def list_stores(
    status: Optional[str] = Query(None, description="active | inactive | archived"),
    include_archived: bool = Query(False),
    company: Organization = Depends(get_organization)
):
    try:
        stores = store_repository.find_all(company.id, status=status, include_archived=include_archived)
        return {"status": "success", "count": len(stores), "data": [s.to_dict() for s in stores]}
    except Exception as e:
        raise http_error(e, "fetching stores")


@router.post("", status_code=201)
async def create_store(
    payload: StoreCreate,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        store = store_service.create_store(company.id, payload.model_dump(exclude_none=True))
        return {"status": "success", "data": store.to_dict()}
    except Exception as e:
        raise http_error(e, "creating store")


@router.get("/{store_id}")
async def get_store(store_id: int, company: Organization = Depends(get_organization)):
    try:
        return {"status": "success", "data": store_service.get_store(company.id, store_id).to_dict()}
    except Exception as e:
        raise http_error(e, "fetching store")


@router.patch("/{store_id}")
async def update_store(
    store_id: int,
    payload: StoreUpdate,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        store = store_service.update_store(company.id, store_id, payload.model_dump(exclude_unset=True))
        return {"status": "success", "data": store.to_dict()}
    except Exception as e:
        raise http_error(e, "updating store")


@router.delete("/{store_id}")
async def delete_store(
    store_id: int,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        store_service.delete_store(company.id, store_id)
        return {"status": "success", "message": f"Store {store_id} deleted"}
    except Exception as e:
        raise http_error(e, "deleting store")


@router.post("/{store_id}/archive")
async def archive_store(
    store_id: int,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        return {"status": "success", "data": store_service.archive_store(company.id, store_id).to_dict()}
    except Exception as e:
        raise http_error(e, "archiving store")


@router.post("/{store_id}/unarchive")
async def unarchive_store(
    store_id: int,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        return {"status": "success", "data": store_service.unarchive_store(company.id, store_id).to_dict()}
    except Exception as e:
        raise http_error(e, "unarchiving store")


@router.patch("/{store_id}/status")
async def set_store_status(
    store_id: int,
    payload: StoreStatusUpdate,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        store = store_service.set_status(company.id, store_id, payload.status)
        return {"status": "success", "data": store.to_dict()}
    except Exception as e:
        raise http_error(e, "updating store status")


# ============================================================================
# Store users
# ============================================================================

@router.get("/{store_id}/users")
async def list_store_users(store_id: int, company: Organization = Depends(get_organization)):
    try:
        store_service.get_store(company.id, store_id)
        users = store_repository.find_users(store_id)
        return {"status": "success", "count": len(users), "data": users}
    except Exception as e:
        raise http_error(e, "fetching store users")


@router.post("/{store_id}/users")
async def assign_store_user(
    store_id: int,
    payload: StoreUserAssign,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        store_service.get_store(company.id, store_id)
        if not user_repository.find_by_id(company.id, payload.user_id):
            raise HTTPException(status_code=404, detail=f"User {payload.user_id} not found")
        created = store_repository.assign_user(store_id, payload.user_id)
        message = "User assigned to store" if created else "User already assigned to store"
        return {"status": "success", "message": message}
    except Exception as e:
        raise http_error(e, "assigning store user")


@router.delete("/{store_id}/users/{user_id}")
async def remove_store_user(
    store_id: int,
    user_id: int,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        store_service.get_store(company.id, store_id)
        if not store_repository.remove_user(store_id, user_id):
            raise HTTPException(status_code=404, detail="User is not assigned to this store")
        return {"status": "success", "message": "User removed from store"}
    except Exception as e:
        raise http_error(e, "removing store user")
