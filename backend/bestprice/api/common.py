"""
Shared router helpers: exception mapping and organization resolution

Author: TM3
Date: 2025-10-17
"""
import logging

from fastapi import Depends, HTTPException

from bestprice.core.auth import TokenUser, require_org_member
from bestprice.domain.organization import Organization
from bestprice.repositories.organization_repository import OrganizationRepository
from bestprice.services.plan_enforcement_service import PlanActionDenied

logger = logging.getLogger(__name__)

organization_repository = OrganizationRepository()


def http_error(e: Exception, action: str) -> HTTPException:
    """
    Map a service exception to an HTTPException

    ValueError -> 400, LookupError -> 404, PlanActionDenied -> 403,
    anything else -> 500.
    """
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, PlanActionDenied):
        return HTTPException(status_code=403, detail={
            "message": e.decision.message,
            "upgrade_url": e.decision.upgrade_url,
        })
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, LookupError):
        return HTTPException(status_code=404, detail=str(e).strip("'\""))

    logger.error(f"Error {action}: {e}")
    return HTTPException(status_code=500, detail=f"Error {action}: {str(e)}")


async def get_organization(
    slug: str,
    user: TokenUser = Depends(require_org_member)
) -> Organization:
    """Organization for /org/{slug}/api routes; 404 when the slug is unknown"""
    company = organization_repository.find_by_slug(slug)
    if not company:
        raise HTTPException(status_code=404, detail=f"Organization '{slug}' not found")
    return company
