"""
Organization API - subscription, settings, profile and users of a company

Endpoints (prefix /org/{slug}/api):
- GET   /subscription                   - Plan status (limits, usage, warnings)
- GET   /subscription/plans             - Available plans
- POST  /subscription/change-plan       - Change plan (org admin)
- POST  /subscription/extend-trial      - Extend trial (org admin)
- GET   /subscription/status            - Company status and trial days
- GET   /settings, PATCH /settings      - Company settings (JSON)
- GET   /company,  PATCH /company       - Company profile
- GET   /users,    POST /users          - Company users (plan limited: add_user)

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from bestprice.api.auth import pwd_context
from bestprice.api.common import http_error, get_organization
from bestprice.core.auth import TokenUser, require_org_manager
from bestprice.domain.organization import Organization, PLANS
from bestprice.repositories.organization_repository import OrganizationRepository
from bestprice.repositories.plan_settings_repository import PlanSettingsRepository
from bestprice.repositories.user_repository import UserRepository
from bestprice.services.organization_service import OrganizationService, MAX_TRIAL_EXTENSION_DAYS
from bestprice.services.plan_enforcement_service import (
    PlanEnforcementService, DEFAULT_PLAN_LIMITS, trial_days_remaining
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/org/{slug}/api", tags=["Organization"])

plan_repository = PlanSettingsRepository()
organization_service = OrganizationService(OrganizationRepository(), plan_repository)
plan_service = PlanEnforcementService(plan_repository)
user_repository = UserRepository()

ORG_USER_ROLES = ("org_admin", "user", "viewer")


class PlanChange(BaseModel):
    plan: str


class TrialExtension(BaseModel):
    days: int = Field(..., ge=1, le=MAX_TRIAL_EXTENSION_DAYS)


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class UserCreate(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    password: str = Field(..., min_length=8)
    role: str = "user"


# ============================================================================
# Subscription
# ============================================================================

@router.get("/subscription")
async def get_subscription(company: Organization = Depends(get_organization)):
    try:
        return {"status": "success", "data": plan_service.get_plan_status(company)}
    except Exception as e:
        raise http_error(e, "fetching subscription")


@router.get("/subscription/plans")
async def list_plans(company: Organization = Depends(get_organization)):
    """Active configured plans, or the built-in plans when none are configured"""
    try:
        configured = plan_repository.find_all(active_only=True)
        if configured:
            plans = [p.to_dict() for p in configured]
        else:
            plans = []
            for name in PLANS:
                limits = DEFAULT_PLAN_LIMITS[name]
                plans.append({
                    "plan_id": name,
                    "plan_name": name.title(),
                    "max_users": limits.max_users,
                    "max_vendors": limits.max_vendors,
                    "max_orders": limits.max_orders,
                    **limits.features,
                })
        return {"status": "success", "count": len(plans), "current_plan": company.plan, "data": plans}
    except Exception as e:
        raise http_error(e, "fetching plans")


@router.post("/subscription/change-plan")
async def change_plan(
    payload: PlanChange,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        updated = organization_service.change_plan(company.id, payload.plan)
        logger.info(f"{user.email} changed plan of {company.slug} to {updated.plan}")
        return {"status": "success", "data": updated.to_dict()}
    except Exception as e:
        raise http_error(e, "changing plan")


@router.post("/subscription/extend-trial")
async def extend_trial(
    payload: TrialExtension,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        updated = organization_service.extend_trial(company.id, payload.days)
        return {
            "status": "success",
            "data": updated.to_dict(),
            "trial_days_remaining": trial_days_remaining(updated.trial_ends_at),
        }
    except Exception as e:
        raise http_error(e, "extending trial")


@router.get("/subscription/status")
async def get_subscription_status(company: Organization = Depends(get_organization)):
    return {
        "status": "success",
        "data": {
            "status": company.status,
            "trial_status": company.trial_status,
            "plan": company.plan,
            "trial_ends_at": company.trial_ends_at,
            "trial_days_remaining": trial_days_remaining(company.trial_ends_at),
        }
    }


# ============================================================================
# Settings / profile
# ============================================================================

@router.get("/settings")
async def get_settings(company: Organization = Depends(get_organization)):
    return {"status": "success", "data": company.settings or {}}


@router.patch("/settings")
async def update_settings(
    changes: Dict[str, Any],
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        return {"status": "success", "data": organization_service.update_settings(company.id, changes)}
    except Exception as e:
        raise http_error(e, "updating settings")


@router.get("/company")
async def get_company(company: Organization = Depends(get_organization)):
    return {"status": "success", "data": company.to_dict()}


@router.patch("/company")
async def update_company(
    payload: CompanyUpdate,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        updated = organization_service.update_profile(company.id, payload.model_dump(exclude_unset=True))
        return {"status": "success", "data": updated.to_dict()}
    except Exception as e:
        raise http_error(e, "updating company")


# ============================================================================
# Users
# ============================================================================

@router.get("/users")
async def list_users(company: Organization = Depends(get_organization)):
    try:
        users = user_repository.find_all(company.id)
        return {"status": "success", "count": len(users), "data": users}
    except Exception as e:
        raise http_error(e, "fetching users")


@router.post("/users", status_code=201)
async def create_user(
    payload: UserCreate,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(require_org_manager)
):
    try:
        if payload.role not in ORG_USER_ROLES:
            raise ValueError(f"Invalid role '{payload.role}'. Must be one of: {', '.join(ORG_USER_ROLES)}")
        if user_repository.find_by_email(payload.email):
            raise ValueError(f"A user with email {payload.email} already exists")

        plan_service.enforce(company, "add_user")
        created = user_repository.create(
            company.id, payload.email, payload.name, pwd_context.hash(payload.password), payload.role
        )
        logger.info(f"Created user {created['id']} ({payload.role}) in {company.slug}")
        return {"status": "success", "data": created}
    except Exception as e:
        raise http_error(e, "creating user")
