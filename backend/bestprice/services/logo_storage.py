"""
Logo file storage for platform and vendor branding

Files are written under LOGO_UPLOAD_DIR and served at LOGO_URL_PREFIX.

Author: TM3
Date: 2025-10-17
"""
import os
import uuid
import logging
from typing import Optional

from bestprice.core.config import settings

logger = logging.getLogger(__name__)

LOGO_URL_PREFIX = "/uploads/logos"

ALLOWED_LOGO_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/svg+xml": ".svg",
    "image/webp": ".webp",
}


def save_logo(content: bytes, content_type: Optional[str], prefix: str = "logo") -> str:
    """
    Store an uploaded logo and return its public URL

    Raises:
        ValueError: unsupported type, empty or oversized file
    """
    extension = ALLOWED_LOGO_TYPES.get((content_type or "").lower())
    if not extension:
        raise ValueError(f"Unsupported logo type: {content_type}. Allowed: png, jpeg, svg, webp")
    if not content:
        raise ValueError("Logo file is empty")
    if len(content) > settings.MAX_LOGO_BYTES:
        raise ValueError(f"Logo exceeds the {settings.MAX_LOGO_BYTES // (1024 * 1024)} MB limit")

    os.makedirs(settings.LOGO_UPLOAD_DIR, exist_ok=True)
    filename = f"{prefix}-{uuid.uuid4().hex}{extension}"
    with open(os.path.join(settings.LOGO_UPLOAD_DIR, filename), "wb") as f:
        f.write(content)

    logger.info(f"Saved logo {filename} ({len(content)} bytes)")
    return f"{LOGO_URL_PREFIX}/{filename}"


def delete_logo_file(logo_url: Optional[str]) -> bool:
    """Remove a previously stored logo; URLs outside the upload dir are ignored"""
    if not logo_url or not logo_url.startswith(f"{LOGO_URL_PREFIX}/"):
        return False

    filename = os.path.basename(logo_url)
    path = os.path.join(settings.LOGO_UPLOAD_DIR, filename)
    if not os.path.exists(path):
        return False

    os.remove(path)
    logger.info(f"Deleted logo {filename}")
    return True
