"""
Lipsey's API Connector

Author: TM3
Date: 2025-10-17

API CONFIGURATION:
- Base URL: https://api.lipseys.com
- Images: https://www.lipseyscloud.com/images/{imageName}

AUTHENTICATION:
- Login: POST /api/Integration/Authentication/Login
  - Body: {"Email": "...", "Password": "..."}
  - Returns: {"token": "...", "econtact": {"name": "..."}}
- Data requests send the token in a "Token" header

ENDPOINTS:
- GET /api/Integration/Items/CatalogFeed - full catalog (JSON list, or
  {"data": [...]} depending on account)
"""
import logging
from typing import Dict, List, Optional, Any

import httpx

from bestprice.core.config import settings

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://www.lipseyscloud.com/images"


def image_url(image_name: Optional[str]) -> Optional[str]:
    if not image_name:
        return None
    return f"{IMAGE_BASE_URL}/{image_name}"


class LipseysConnector:
    """Connector for the Lipsey's dealer API"""

    LOGIN_PATH = "/api/Integration/Authentication/Login"
    CATALOG_PATH = "/api/Integration/Items/CatalogFeed"

    def __init__(self, email: str = None, password: str = None, base_url: Optional[str] = None):
        if not email or not password:
            raise ValueError("Lipsey's credentials not configured (email and password are required)")

        self.email = email
        self.password = password
        self.base_url = (base_url or settings.LIPSEYS_BASE_URL).rstrip('/')
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self._token: Optional[str] = None
        self.dealer_name: Optional[str] = None

    @property
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._token:
            headers["Token"] = self._token
        return headers

    async def _login(self, client: httpx.AsyncClient) -> bool:
        response = await client.post(
            f"{self.base_url}{self.LOGIN_PATH}",
            json={"Email": self.email, "Password": self.password},
            headers=self._headers
        )
        if response.status_code != 200:
            logger.warning(f"Lipsey's login failed with status {response.status_code}")
            return False

        data = response.json()
        self._token = data.get("token")
        self.dealer_name = (data.get("econtact") or {}).get("name")
        return bool(self._token)

    async def test_connection(self) -> Dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                if await self._login(client):
                    dealer = f" ({self.dealer_name})" if self.dealer_name else ""
                    return {"success": True, "message": f"Connected to Lipsey's{dealer}"}
                return {"success": False, "message": "Authentication failed - check email and password"}
        except httpx.HTTPError as e:
            logger.error(f"Lipsey's connection test failed: {e}")
            return {"success": False, "message": f"Connection failed: {str(e)}"}

    async def get_catalog_feed(self) -> List[Dict[str, Any]]:
        """
        Full catalog feed

        Raises:
            PermissionError: when login is rejected
            httpx.HTTPStatusError: on a non-2xx catalog response
        """
        async with httpx.AsyncClient(timeout=self.timeout * 10) as client:
            if not self._token and not await self._login(client):
                raise PermissionError("Lipsey's authentication failed")

            response = await client.get(f"{self.base_url}{self.CATALOG_PATH}", headers=self._headers)
            response.raise_for_status()
            payload = response.json()

        if isinstance(payload, dict):
            payload = payload.get("data") or []
        logger.info(f"Lipsey's catalog feed returned {len(payload)} items")
        return payload
