"""
Sports South Web Service Connector

Author: TM3
Date: 2025-10-17

API CONFIGURATION:
- Base URL: http://webservices.theshootingwarehouse.com/smart
- HTTP GET ASMX service, XML responses

AUTHENTICATION:
- Every request carries UserName, CustomerNumber, Password and Source
  as query parameters

ENDPOINTS:
- GET /inventory.asmx/DailyItemUpdate
  - LastUpdate: MM/DD/YYYY; 1/1/1990 returns the full catalog
  - LastItem: -1 lifts the 1000 item page limit
  - Returns a DataSet whose Table rows hold ITEMNO, IDESC, ITUPC, MFGINO,
    CATID, PRC1, MFPRC, QTYOH, IMFGNO. Some accounts receive the DataSet
    as escaped XML inside a <string> element.
"""
import asyncio
import logging
import xml.etree.ElementTree as ET
from datetime import datetime, date
from typing import Dict, List, Optional, Union

import requests

from bestprice.core.config import settings

logger = logging.getLogger(__name__)

FULL_CATALOG_DATE = "1/1/1990"
AUTH_ERROR_MARKERS = ("invalid", "unauthorized", "not authorized", "authentication", "failed")


def format_last_update(value: Optional[Union[datetime, date]]) -> str:
    if value is None:
        return FULL_CATALOG_DATE
    return value.strftime("%m/%d/%Y")


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def parse_item_tables(xml_text: str) -> List[Dict[str, str]]:
    """Flatten every <Table> row of a DataSet response into a dict"""
    root = ET.fromstring(xml_text)

    # DataSet serialized as a string inside the SOAP-style wrapper
    if _local_name(root.tag) == 'string' and root.text and '<' in root.text:
        root = ET.fromstring(root.text.strip())

    rows = []
    for element in root.iter():
        if _local_name(element.tag) != 'Table':
            continue
        rows.append({
            _local_name(child.tag): (child.text or '').strip()
            for child in element
        })
    return rows


class SportsSouthConnector:
    """Connector for the Sports South inventory web service"""

    def __init__(self, user_name: str = None, customer_number: str = None,
                 password: str = None, source: str = None, base_url: Optional[str] = None):
        if not user_name or not customer_number or not password or not source:
            raise ValueError(
                "Sports South credentials not configured "
                "(userName, customerNumber, password and source are required)"
            )

        self.auth_params = {
            "UserName": user_name,
            "CustomerNumber": customer_number,
            "Password": password,
            "Source": source,
        }
        self.base_url = (base_url or settings.SPORTS_SOUTH_BASE_URL).rstrip('/')
        self.timeout = settings.HTTP_TIMEOUT_SECONDS

    def _daily_item_update(self, last_update: str, last_item: str, timeout: float) -> str:
        params = dict(self.auth_params, LastUpdate=last_update, LastItem=last_item)
        response = requests.get(
            f"{self.base_url}/inventory.asmx/DailyItemUpdate",
            params=params,
            timeout=timeout
        )
        response.raise_for_status()
        return response.text

    def get_daily_item_update(self, since: Optional[Union[datetime, date]] = None) -> List[Dict[str, str]]:
        """
        Items changed since a date; the full catalog when since is None

        Raises:
            requests.HTTPError: on a non-2xx response
            xml.etree.ElementTree.ParseError: on a malformed response
        """
        last_update = format_last_update(since)
        # Full catalog responses take minutes
        timeout = 300 if since is None else self.timeout
        logger.info(f"Requesting Sports South DailyItemUpdate since {last_update}")

        xml_text = self._daily_item_update(last_update, "-1", timeout)
        items = parse_item_tables(xml_text)
        logger.info(f"Sports South returned {len(items)} items")
        return items

    def _check_connection(self) -> Dict:
        try:
            xml_text = self._daily_item_update(format_last_update(datetime.now()), "0", self.timeout)
        except requests.RequestException as e:
            return {"success": False, "message": f"Connection failed: {str(e)}"}

        lowered = xml_text.lower()
        if any(marker in lowered for marker in AUTH_ERROR_MARKERS):
            return {"success": False, "message": "Authentication failed - invalid credentials"}
        return {"success": True, "message": "Sports South API connection successful"}

    async def test_connection(self) -> Dict:
        return await asyncio.to_thread(self._check_connection)
