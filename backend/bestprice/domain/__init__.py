"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.

Author: TM3
Date: 2025-10-17
"""
from bestprice.domain.settings import AdminSettings
from bestprice.domain.vendor import SupportedVendor, CredentialField, VendorFeatures, CompanyVendorCredentials
from bestprice.domain.organization import Organization, Store, PlanSettings
from bestprice.domain.order import VendorOrder, OrderItem
from bestprice.domain.asn import Asn, AsnItem

__all__ = [
    'AdminSettings',
    'SupportedVendor',
    'CredentialField',
    'VendorFeatures',
    'CompanyVendorCredentials',
    'Organization',
    'Store',
    'PlanSettings',
    'VendorOrder',
    'OrderItem',
    'Asn',
    'AsnItem',
]
