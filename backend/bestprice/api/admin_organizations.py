"""
Admin Organizations API - companies, plans and cross-company listings

Endpoints:
- GET   /api/admin/plan-settings
- GET   /api/admin/plan-settings/{plan_id}
- PUT   /api/admin/plan-settings/{plan_id}
- GET   /api/admin/subscriptions
- GET   /api/admin/organizations
- PATCH /api/admin/organizations/{id}/status
- PATCH /api/admin/organizations/{id}/plan
- POST  /api/admin/organizations/{id}/extend-trial
- GET   /api/admin/stores
- GET   /api/admin/orders

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from bestprice.api.common import http_error
from bestprice.core.auth import TokenUser, require_admin
from bestprice.repositories.order_repository import OrderRepository
from bestprice.repositories.organization_repository import OrganizationRepository
from bestprice.repositories.plan_settings_repository import PlanSettingsRepository
from bestprice.repositories.store_repository import StoreRepository
from bestprice.services.organization_service import OrganizationService
from bestprice.services.plan_enforcement_service import trial_days_remaining

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["Admin Organizations"])

organization_repository = OrganizationRepository()
plan_repository = PlanSettingsRepository()
store_repository = StoreRepository()
order_repository = OrderRepository()
organization_service = OrganizationService(organization_repository, plan_repository)


# ============================================================================
# Request Models
# ============================================================================

class PlanSettingsUpdate(BaseModel):
    plan_name: Optional[str] = None
    trial_length_days: Optional[int] = Field(None, ge=0)
    plan_length_days: Optional[int] = Field(None, ge=0)
    max_users: Optional[int] = Field(None, ge=0)
    max_vendors: Optional[int] = Field(None, ge=0)
    max_orders: Optional[int] = Field(None, ge=0)
    online_ordering: Optional[bool] = None
    asn_processing: Optional[bool] = None
    webhook_export: Optional[bool] = None
    advanced_analytics: Optional[bool] = None
    api_access: Optional[bool] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class StatusUpdate(BaseModel):
    status: str
    reason: Optional[str] = None


class PlanUpdate(BaseModel):
    plan: str


class TrialExtension(BaseModel):
    days: int = Field(..., ge=1)


# ============================================================================
# Plan settings
# ============================================================================

@router.get("/plan-settings")
async def list_plan_settings(user: TokenUser = Depends(require_admin)):
    try:
        plans = plan_repository.find_all()
        return {"status": "success", "count": len(plans), "data": [p.to_dict() for p in plans]}
    except Exception as e:
        raise http_error(e, "fetching plan settings")


@router.get("/plan-settings/{plan_id}")
async def get_plan_settings(plan_id: str, user: TokenUser = Depends(require_admin)):
    try:
        plan = plan_repository.find_by_plan(plan_id)
        if not plan:
            raise HTTPException(status_code=404, detail=f"Plan '{plan_id}' not found")
        return {"status": "success", "data": plan.to_dict()}
    except Exception as e:
        raise http_error(e, "fetching plan settings")


@router.put("/plan-settings/{plan_id}")
async def upsert_plan_settings(plan_id: str, payload: PlanSettingsUpdate, user: TokenUser = Depends(require_admin)):
    """Create or update a plan; explicit nulls make a limit unlimited"""
    try:
        fields = payload.model_dump(exclude_unset=True)
        if not plan_repository.find_by_plan(plan_id) and not fields.get("plan_name"):
            fields["plan_name"] = plan_id.title()
        plan = plan_repository.upsert(plan_id, fields)
        logger.info(f"Plan settings saved for {plan_id} by {user.email}")
        return {"status": "success", "data": plan.to_dict()}
    except Exception as e:
        raise http_error(e, "saving plan settings")


# ============================================================================
# Organizations
# ============================================================================

@router.get("/organizations")
async def list_organizations(
    status: Optional[str] = Query(None, description="Filter by company status"),
    plan: Optional[str] = Query(None, description="Filter by plan"),
    search: Optional[str] = Query(None, description="Search name, slug or email"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_admin)
):
    try:
        organizations, total = organization_repository.find_all(
            status=status, plan=plan, search=search, limit=limit, offset=offset
        )
        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(organizations),
            "data": [o.to_dict() for o in organizations],
        }
    except Exception as e:
        raise http_error(e, "fetching organizations")


@router.get("/subscriptions")
async def list_subscriptions(
    status: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_admin)
):
    try:
        organizations, total = organization_repository.find_all(status=status, limit=limit, offset=offset)
        data = [
            {
                "company_id": o.id,
                "name": o.name,
                "slug": o.slug,
                "plan": o.plan,
                "status": o.status,
                "trial_status": o.trial_status,
                "trial_ends_at": o.trial_ends_at,
                "trial_days_remaining": trial_days_remaining(o.trial_ends_at),
                "trial_extensions": o.trial_extensions,
                "billing_provider": o.billing_provider,
                "billing_subscription_id": o.billing_subscription_id,
            }
            for o in organizations
        ]
        return {"status": "success", "total": total, "count": len(data), "data": data}
    except Exception as e:
        raise http_error(e, "fetching subscriptions")


@router.patch("/organizations/{company_id}/status")
async def update_organization_status(company_id: int, payload: StatusUpdate, user: TokenUser = Depends(require_admin)):
    try:
        company = organization_service.update_status(company_id, payload.status, payload.reason, changed_by=user.email)
        return {"status": "success", "data": company.to_dict()}
    except Exception as e:
        raise http_error(e, "updating organization status")


@router.patch("/organizations/{company_id}/plan")
async def update_organization_plan(company_id: int, payload: PlanUpdate, user: TokenUser = Depends(require_admin)):
    try:
        company = organization_service.change_plan(company_id, payload.plan)
        return {"status": "success", "data": company.to_dict()}
    except Exception as e:
        raise http_error(e, "updating organization plan")


@router.post("/organizations/{company_id}/extend-trial")
async def extend_organization_trial(company_id: int, payload: TrialExtension, user: TokenUser = Depends(require_admin)):
    try:
        company = organization_service.extend_trial(company_id, payload.days)
        return {"status": "success", "data": company.to_dict()}
    except Exception as e:
        raise http_error(e, "extending trial")


@router.get("/organizations/{company_id}/status-history")
async def get_organization_status_history(company_id: int, user: TokenUser = Depends(require_admin)):
    try:
        history = organization_repository.find_status_history(company_id)
        return {"status": "success", "count": len(history), "data": history}
    except Exception as e:
        raise http_error(e, "fetching status history")


# ============================================================================
# Cross-company listings
# ============================================================================

@router.get("/stores")
async def list_all_stores(
    search: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_admin)
):
    try:
        stores = store_repository.find_all_admin(search=search, limit=limit, offset=offset)
        return {"status": "success", "count": len(stores), "data": stores}
    except Exception as e:
        raise http_error(e, "fetching stores")


@router.get("/orders")
async def list_all_orders(
    status: Optional[str] = Query(None),
    company_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_admin)
):
    try:
        orders, total = order_repository.find_all_admin(status=status, company_id=company_id, limit=limit, offset=offset)
        return {"status": "success", "total": total, "count": len(orders), "data": orders}
    except Exception as e:
        raise http_error(e, "fetching orders")
