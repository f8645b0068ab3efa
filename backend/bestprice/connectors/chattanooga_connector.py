"""
Chattanooga Shooting Supplies API Connector (REST v5)

Author: TM3
Date: 2025-10-17

API CONFIGURATION:
- Base URL: https://api.chattanoogashooting.com/rest/v5

AUTHENTICATION (IMPORTANT):
- Header: Authorization: Basic {sid}:{md5(token)}
  - md5 digest in lowercase hex
  - the value is NOT base64 encoded

ENDPOINTS:
- GET /items?per_page=1 - connection probe
  - 401 with error_code 4001: credentials valid but API access not activated
- GET /items/product-feed?optional_columns=specifications,retail_map&return_custom_properties=1
  - JSON {"product_feed": {"url": "..."}} pointing to the CSV,
    or the CSV body itself (text/csv)
"""
import hashlib
import logging
from typing import Dict, Optional

import httpx

from bestprice.core.config import settings

logger = logging.getLogger(__name__)


def build_auth_header(sid: str, token: str) -> str:
    token_hash = hashlib.md5(token.encode('utf-8')).hexdigest()
    return f"Basic {sid}:{token_hash}"


class ChattanoogaConnector:
    """Connector for the Chattanooga REST API"""

    ACTIVATION_ERROR_CODE = 4001

    def __init__(self, sid: str = None, token: str = None, base_url: Optional[str] = None):
        """
        Args:
            sid: account SID
            token: API token (sent as its md5 digest)
        """
        if not sid or not token:
            raise ValueError("Chattanooga credentials not configured (sid and token are required)")

        self.sid = sid
        self.token = token
        self.base_url = (base_url or settings.CHATTANOOGA_BASE_URL).rstrip('/')
        self.timeout = settings.HTTP_TIMEOUT_SECONDS

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": build_auth_header(self.sid, self.token),
            "Accept": "application/json",
            "User-Agent": "BestPrice/1.0",
        }

    async def test_connection(self) -> Dict:
        url = f"{self.base_url}/items"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=self._headers, params={"per_page": 1})
        except httpx.HTTPError as e:
            logger.error(f"Chattanooga connection test failed: {e}")
            return {"success": False, "message": f"Connection failed: {str(e)}"}

        if response.status_code == 200:
            return {"success": True, "message": "Connection successful - Chattanooga API is accessible"}

        if response.status_code == 401:
            try:
                error_code = response.json().get("error_code")
            except ValueError:
                error_code = None
            if error_code == self.ACTIVATION_ERROR_CODE:
                return {
                    "success": False,
                    "message": "Account activation required: the credentials are valid but API access "
                               "must be activated by Chattanooga (error 4001)"
                }
            return {"success": False, "message": "Authentication failed: verify your SID and Token"}

        return {"success": False, "message": f"API error: {response.status_code}"}

    async def get_product_feed(self) -> str:
        """
        Download the full product feed CSV

        Raises:
            httpx.HTTPStatusError: on a non-2xx response
            ValueError: when the response carries no CSV or CSV URL
        """
        url = f"{self.base_url}/items/product-feed"
        params = {
            "optional_columns": "specifications,retail_map",
            "return_custom_properties": "1",
        }

        async with httpx.AsyncClient(timeout=self.timeout * 10) as client:
            response = await client.get(url, headers=self._headers, params=params)
            response.raise_for_status()

            content_type = response.headers.get("content-type", "")
            if "application/json" in content_type:
                feed = response.json().get("product_feed") or {}
                csv_url = feed.get("url")
                if not csv_url:
                    raise ValueError("Product feed response did not include a CSV URL")

                logger.info(f"Downloading Chattanooga product feed CSV from {csv_url}")
                csv_response = await client.get(csv_url, headers={"User-Agent": "BestPrice/1.0"})
                csv_response.raise_for_status()
                return csv_response.text

            if "text/csv" in content_type or "text/plain" in content_type:
                return response.text

            raise ValueError(f"Unexpected product feed content type: {content_type}")
