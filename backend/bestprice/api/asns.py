"""
ASN API - Advanced Ship Notices of an organization

Endpoints (prefix /org/{slug}/api):
- GET  /asns                     - List ASNs
- GET  /asns/{id}                - ASN with items
- GET  /asns/{id}/items          - Items of an ASN
- GET  /detailed-asns            - List with items, vendor, order and store
- POST /ship-notices/from-order  - Manual ASN from an order (plan feature: asn_processing)

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from bestprice.api.common import http_error, get_organization
from bestprice.domain.organization import Organization
from bestprice.repositories.asn_repository import AsnRepository
from bestprice.repositories.order_repository import OrderRepository
from bestprice.services.asn_service import AsnService
from bestprice.services.order_service import OrderService
from bestprice.services.plan_enforcement_service import PlanEnforcementService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/org/{slug}/api", tags=["ASNs"])

asn_repository = AsnRepository()
asn_service = AsnService(asn_repository)
order_service = OrderService(OrderRepository())
plan_service = PlanEnforcementService()


class ShipNoticeFromOrder(BaseModel):
    order_id: int
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


def _list_response(asns, total, limit, offset):
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(asns),
        "data": [a.to_dict() for a in asns],
    }


@router.get("/asns")
async def list_asns(
    status: Optional[str] = Query(None, description="open | complete | partial | cancelled"),
    vendor_id: Optional[int] = Query(None),
    order_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    company: Organization = Depends(get_organization)
):
    try:
        asns, total = asn_repository.find_all(
            company.id, status=status, vendor_id=vendor_id, order_id=order_id, limit=limit, offset=offset
        )
        return _list_response(asns, total, limit, offset)
    except Exception as e:
        raise http_error(e, "fetching ASNs")


@router.get("/detailed-asns")
async def list_detailed_asns(
    status: Optional[str] = Query(None),
    vendor_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    company: Organization = Depends(get_organization)
):
    try:
        asns, total = asn_repository.find_all(
            company.id, status=status, vendor_id=vendor_id, with_items=True, limit=limit, offset=offset
        )
        return _list_response(asns, total, limit, offset)
    except Exception as e:
        raise http_error(e, "fetching detailed ASNs")


@router.get("/asns/{asn_id}")
async def get_asn(asn_id: int, company: Organization = Depends(get_organization)):
    try:
        return {"status": "success", "data": asn_service.get_asn(company.id, asn_id).to_dict()}
    except Exception as e:
        raise http_error(e, "fetching ASN")


@router.get("/asns/{asn_id}/items")
async def get_asn_items(asn_id: int, company: Organization = Depends(get_organization)):
    try:
        asn = asn_service.get_asn(company.id, asn_id)
        return {"status": "success", "count": len(asn.items), "data": [i.model_dump() for i in asn.items]}
    except Exception as e:
        raise http_error(e, "fetching ASN items")


@router.post("/ship-notices/from-order", status_code=201)
async def create_ship_notice_from_order(payload: ShipNoticeFromOrder, company: Organization = Depends(get_organization)):
    try:
        plan_service.enforce(company, "access_feature", "asn_processing")
        order = order_service.get_order(company.id, payload.order_id)
        asn = asn_service.create_from_order(company.id, order, payload.tracking_number, payload.notes)
        return {"status": "success", "data": asn.to_dict()}
    except Exception as e:
        raise http_error(e, "creating ship notice")
