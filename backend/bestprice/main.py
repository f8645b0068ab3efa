"""
BestPrice Back Office - Backend API
Multi-tenant firearms retail management: vendor catalogs, stores, orders
"""
import time
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from bestprice.core.config import settings
from bestprice.core.database import get_db_connection_with_retry, CONNECTION_TIMEOUT
from bestprice.core.rate_limit import RateLimitMiddleware

# Import API routers
from bestprice.api import (
    admin_settings, supported_vendors, vendor_sync, admin_organizations,
    stores, org_vendors, orders, asns, organization, auth, sync
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)

# Uploaded logos are served from disk
app.mount("/uploads/logos", StaticFiles(directory=settings.LOGO_UPLOAD_DIR, check_dir=False), name="logos")

# Auth
app.include_router(auth.router)

# Platform admin
app.include_router(admin_settings.router)
app.include_router(supported_vendors.router)
app.include_router(admin_organizations.router)
app.include_router(vendor_sync.router)

# Organization scoped (/org/{slug}/api)
app.include_router(stores.router)
app.include_router(org_vendors.router)
app.include_router(orders.router)
app.include_router(asns.router)
app.include_router(organization.router)

# Scheduled sync (external cron)
app.include_router(sync.router)


@app.get("/")
async def root():
    return {
        "message": "BestPrice API",
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/health")
async def health():
    """Health check endpoint for monitoring - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    try:
        # Fast check, single attempt
        conn = get_db_connection_with_retry(max_retries=1, retry_delay=0.5)
        cursor = conn.cursor()
        db_start = time.time()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        db_latency_ms = round((time.time() - db_start) * 1000, 2)

        cursor.close()
        conn.close()
        db_status = "connected"
    except Exception as e:
        db_status = "disconnected"
        db_error = str(e)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "bestprice-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
            "connection_timeout_s": CONNECTION_TIMEOUT
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2)
    }
