"""
Vendor Registry - maps a supported vendor to its connector

Vendors are recognised by name or short code so that renamed rows
("Lipsey's Inc.", "lipseys") still resolve.

Author: TM3
Date: 2025-10-17
"""
from typing import Dict, Any, Optional

from bestprice.domain.vendor import SupportedVendor
from bestprice.connectors.bill_hicks_ftp_connector import BillHicksFTPConnector
from bestprice.connectors.chattanooga_connector import ChattanoogaConnector
from bestprice.connectors.lipseys_connector import LipseysConnector
from bestprice.connectors.sports_south_connector import SportsSouthConnector

BILL_HICKS = "bill_hicks"
CHATTANOOGA = "chattanooga"
LIPSEYS = "lipseys"
SPORTS_SOUTH = "sports_south"


def vendor_kind(vendor_or_name) -> Optional[str]:
    """Canonical handler key for a vendor, or None when no connector exists"""
    if isinstance(vendor_or_name, SupportedVendor):
        text = f"{vendor_or_name.name} {vendor_or_name.vendor_short_code or ''}"
    else:
        text = vendor_or_name or ""
    text = text.lower().replace("'", "")

    if "bill" in text and "hicks" in text:
        return BILL_HICKS
    if "chattanooga" in text:
        return CHATTANOOGA
    if "lipsey" in text:
        return LIPSEYS
    if "sports" in text and "south" in text:
        return SPORTS_SOUTH
    return None


def _first(credentials: Dict[str, Any], *keys: str):
    for key in keys:
        if credentials.get(key):
            return credentials[key]
    return None


def create_connector(vendor: SupportedVendor, credentials: Dict[str, Any]):
    """
    Build the connector for a vendor from (aliased) credentials

    Raises:
        ValueError: no connector for this vendor, or required credentials missing
    """
    kind = vendor_kind(vendor)

    if kind == BILL_HICKS:
        return BillHicksFTPConnector(credentials)
    if kind == CHATTANOOGA:
        return ChattanoogaConnector(
            sid=_first(credentials, "sid", "SID"),
            token=_first(credentials, "token", "Token")
        )
    if kind == LIPSEYS:
        return LipseysConnector(
            email=_first(credentials, "email", "userName", "username"),
            password=_first(credentials, "password")
        )
    if kind == SPORTS_SOUTH:
        return SportsSouthConnector(
            user_name=_first(credentials, "userName", "user_name", "username"),
            customer_number=_first(credentials, "customerNumber", "customer_number"),
            password=_first(credentials, "password"),
            source=_first(credentials, "source")
        )

    raise ValueError(f"No connector available for vendor '{vendor.name}'")
