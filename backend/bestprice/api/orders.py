"""
Orders API - vendor purchase orders of an organization

Endpoints (prefix /org/{slug}/api):
- GET    /orders                        - List (status, vendor, store, search, paging)
- POST   /orders                        - Create draft (plan limited: create_order)
- GET    /orders-open                   - Draft and open orders
- GET    /orders/{id}                   - Get with items
- PATCH  /orders/{id}                   - Update
- DELETE /orders/{id}                   - Delete (draft / cancelled only)
- GET    /orders/{id}/items             - Items
- POST   /orders/{id}/items             - Add item
- PATCH  /orders/{id}/items/{item_id}   - Update item
- DELETE /orders/{id}/items/{item_id}   - Remove item
- POST   /orders/{id}/status            - Status transition
- POST   /orders/{id}/consolidate       - Merge duplicate lines
- GET    /orders/{id}/validate          - Submission readiness
- POST   /orders/bulk-delete
- POST   /orders/bulk-merge
- POST   /orders/bulk-status

Author: TM3
Date: 2025-10-17
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from bestprice.api.common import http_error, get_organization
from bestprice.core.auth import TokenUser, get_current_user
from bestprice.domain.organization import Organization
from bestprice.repositories.order_repository import OrderRepository
from bestprice.repositories.supported_vendor_repository import SupportedVendorRepository
from bestprice.services.order_service import OrderService
from bestprice.services.plan_enforcement_service import PlanEnforcementService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/org/{slug}/api", tags=["Orders"])

order_repository = OrderRepository()
order_service = OrderService(order_repository)
vendor_repository = SupportedVendorRepository()
plan_service = PlanEnforcementService()


# ============================================================================
# Request Models
# ============================================================================

class OrderItemCreate(BaseModel):
    product_id: Optional[int] = None
    vendor_product_id: Optional[int] = None
    vendor_sku: Optional[str] = None
    quantity: int = Field(..., ge=1)
    unit_cost: Decimal = Field(Decimal("0"), ge=0)
    vendor_msrp: Optional[Decimal] = None
    vendor_map_price: Optional[Decimal] = None
    retail_price: Optional[Decimal] = None
    pricing_strategy: Optional[str] = None
    customer_reference: Optional[str] = None


class OrderItemUpdate(BaseModel):
    quantity: Optional[int] = Field(None, ge=1)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    retail_price: Optional[Decimal] = None
    pricing_strategy: Optional[str] = None
    customer_reference: Optional[str] = None
    status: Optional[str] = None


class OrderFields(BaseModel):
    order_type: Optional[str] = None
    order_date: Optional[datetime] = None
    shipping_cost: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    external_order_number: Optional[str] = None
    drop_ship_flag: Optional[bool] = None
    insurance_flag: Optional[bool] = None
    customer: Optional[str] = None
    delivery_option: Optional[str] = None
    ffl_number: Optional[str] = None
    ship_to_name: Optional[str] = None
    ship_to_line1: Optional[str] = None
    ship_to_line2: Optional[str] = None
    ship_to_city: Optional[str] = None
    ship_to_state: Optional[str] = None
    ship_to_zip: Optional[str] = None
    billing_name: Optional[str] = None
    billing_line1: Optional[str] = None
    billing_line2: Optional[str] = None
    billing_city: Optional[str] = None
    billing_state: Optional[str] = None
    billing_zip: Optional[str] = None


class OrderCreate(OrderFields):
    store_id: int
    vendor_id: int
    items: List[OrderItemCreate] = []


class OrderUpdate(OrderFields):
    store_id: Optional[int] = None


class StatusChange(BaseModel):
    status: str


class BulkOrders(BaseModel):
    order_ids: List[int] = Field(..., min_length=1)


class BulkStatus(BulkOrders):
    status: str


def _user_id(user: TokenUser) -> Optional[int]:
    return int(user.id) if str(user.id).isdigit() else None


# ============================================================================
# Orders
# ============================================================================

@router.get("/orders")
async def list_orders(
    status: Optional[str] = Query(None, description="draft | open | complete | cancelled"),
    vendor_id: Optional[int] = Query(None),
    store_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Search by order number"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    company: Organization = Depends(get_organization)
):
    try:
        orders, total = order_repository.find_all(
            company.id, status=status, vendor_id=vendor_id, store_id=store_id,
            search=search, limit=limit, offset=offset
        )
        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(orders),
            "data": [o.to_dict() for o in orders],
        }
    except Exception as e:
        raise http_error(e, "fetching orders")


@router.get("/orders-open")
async def list_open_orders(
    vendor_id: Optional[int] = Query(None),
    store_id: Optional[int] = Query(None),
    company: Organization = Depends(get_organization)
):
    try:
        orders, total = order_repository.find_all(
            company.id, statuses=["draft", "open"], vendor_id=vendor_id, store_id=store_id, limit=500
        )
        return {"status": "success", "count": len(orders), "data": [o.to_dict() for o in orders]}
    except Exception as e:
        raise http_error(e, "fetching open orders")


@router.post("/orders", status_code=201)
async def create_order(
    payload: OrderCreate,
    company: Organization = Depends(get_organization),
    user: TokenUser = Depends(get_current_user)
):
    try:
        plan_service.enforce(company, "create_order")
        data = payload.model_dump(exclude_none=True)
        order = order_service.create_order(company.id, data, created_by=_user_id(user))
        return {"status": "success", "data": order.to_dict()}
    except Exception as e:
        raise http_error(e, "creating order")


@router.post("/orders/bulk-delete")
async def bulk_delete_orders(payload: BulkOrders, company: Organization = Depends(get_organization)):
    try:
        return {"status": "success", "data": order_service.bulk_delete(company.id, payload.order_ids)}
    except Exception as e:
        raise http_error(e, "deleting orders")


@router.post("/orders/bulk-status")
async def bulk_status_orders(payload: BulkStatus, company: Organization = Depends(get_organization)):
    try:
        results = order_service.bulk_status(company.id, payload.order_ids, payload.status)
        return {"status": "success", "count": len(results), "data": results}
    except Exception as e:
        raise http_error(e, "updating order statuses")


@router.post("/orders/bulk-merge")
async def bulk_merge_orders(payload: BulkOrders, company: Organization = Depends(get_organization)):
    try:
        order = order_service.bulk_merge(company.id, payload.order_ids)
        return {"status": "success", "data": order.to_dict()}
    except Exception as e:
        raise http_error(e, "merging orders")


@router.get("/orders/{order_id}")
async def get_order(order_id: int, company: Organization = Depends(get_organization)):
    try:
        return {"status": "success", "data": order_service.get_order(company.id, order_id).to_dict()}
    except Exception as e:
        raise http_error(e, "fetching order")


@router.patch("/orders/{order_id}")
async def update_order(order_id: int, payload: OrderUpdate, company: Organization = Depends(get_organization)):
    try:
        order = order_service.update_order(company.id, order_id, payload.model_dump(exclude_unset=True))
        return {"status": "success", "data": order.to_dict()}
    except Exception as e:
        raise http_error(e, "updating order")


@router.delete("/orders/{order_id}")
async def delete_order(order_id: int, company: Organization = Depends(get_organization)):
    try:
        order_service.delete_order(company.id, order_id)
        return {"status": "success", "message": f"Order {order_id} deleted"}
    except Exception as e:
        raise http_error(e, "deleting order")


@router.post("/orders/{order_id}/status")
async def change_order_status(order_id: int, payload: StatusChange, company: Organization = Depends(get_organization)):
    try:
        order = order_service.transition_status(company.id, order_id, payload.status)
        return {"status": "success", "data": order.to_dict()}
    except Exception as e:
        raise http_error(e, "changing order status")


@router.post("/orders/{order_id}/consolidate")
async def consolidate_order(order_id: int, company: Organization = Depends(get_organization)):
    try:
        result = order_service.consolidate_items(company.id, order_id)
        return {
            "status": "success",
            "data": result["order"].to_dict(),
            "groups_merged": result["groups_merged"],
            "items_removed": result["items_removed"],
        }
    except Exception as e:
        raise http_error(e, "consolidating order")


@router.get("/orders/{order_id}/validate")
async def validate_order(order_id: int, company: Organization = Depends(get_organization)):
    try:
        order = order_service.get_order(company.id, order_id)
        vendor = vendor_repository.find_by_id(order.vendor_id)
        return {"status": "success", "data": order_service.validate_for_submission(order, vendor)}
    except Exception as e:
        raise http_error(e, "validating order")


# ============================================================================
# Items
# ============================================================================

@router.get("/orders/{order_id}/items")
async def list_order_items(order_id: int, company: Organization = Depends(get_organization)):
    try:
        order = order_service.get_order(company.id, order_id)
        return {"status": "success", "count": len(order.items), "data": [i.to_dict() for i in order.items]}
    except Exception as e:
        raise http_error(e, "fetching order items")


@router.post("/orders/{order_id}/items", status_code=201)
async def add_order_item(order_id: int, payload: OrderItemCreate, company: Organization = Depends(get_organization)):
    try:
        order = order_service.add_item(company.id, order_id, payload.model_dump(exclude_none=True))
        return {"status": "success", "data": order.to_dict()}
    except Exception as e:
        raise http_error(e, "adding order item")


@router.patch("/orders/{order_id}/items/{item_id}")
async def update_order_item(
    order_id: int,
    item_id: int,
    payload: OrderItemUpdate,
    company: Organization = Depends(get_organization)
):
    try:
        order = order_service.update_item(company.id, order_id, item_id, payload.model_dump(exclude_unset=True))
        return {"status": "success", "data": order.to_dict()}
    except Exception as e:
        raise http_error(e, "updating order item")


@router.delete("/orders/{order_id}/items/{item_id}")
async def remove_order_item(order_id: int, item_id: int, company: Organization = Depends(get_organization)):
    try:
        order = order_service.remove_item(company.id, order_id, item_id)
        return {"status": "success", "data": order.to_dict()}
    except Exception as e:
        raise http_error(e, "removing order item")
