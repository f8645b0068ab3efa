"""
Admin Settings API - platform configuration (single row)

Endpoints:
- GET    /api/admin/settings      - Settings with secrets masked
- PATCH  /api/admin/settings      - Partial update; masked values are ignored
- POST   /api/admin/upload-logo   - Upload platform logo
- DELETE /api/admin/logo          - Remove platform logo

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, Any

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile

from bestprice.api.common import http_error
from bestprice.core.auth import TokenUser, require_admin
from bestprice.services.admin_settings_service import AdminSettingsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["Admin Settings"])

settings_service = AdminSettingsService()


@router.get("/settings")
async def get_admin_settings(user: TokenUser = Depends(require_admin)):
    try:
        return {"status": "success", "data": settings_service.get_settings().to_dict()}
    except Exception as e:
        raise http_error(e, "fetching admin settings")


@router.patch("/settings")
async def update_admin_settings(
    payload: Dict[str, Any] = Body(...),
    user: TokenUser = Depends(require_admin)
):
    try:
        updated = settings_service.update_settings(payload)
        return {"status": "success", "data": updated.to_dict()}
    except Exception as e:
        raise http_error(e, "updating admin settings")


@router.post("/upload-logo")
async def upload_platform_logo(
    logo: UploadFile = File(...),
    user: TokenUser = Depends(require_admin)
):
    try:
        content = await logo.read()
        logo_url = settings_service.upload_logo(content, logo.content_type)
        return {"status": "success", "data": {"logo_url": logo_url}}
    except Exception as e:
        raise http_error(e, "uploading logo")


@router.delete("/logo")
async def delete_platform_logo(user: TokenUser = Depends(require_admin)):
    try:
        if not settings_service.delete_logo():
            raise HTTPException(status_code=404, detail="No logo configured")
        return {"status": "success", "message": "Logo removed"}
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "removing logo")
