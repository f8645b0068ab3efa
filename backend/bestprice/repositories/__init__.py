"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.

Author: TM3
Date: 2025-10-17
"""
from bestprice.repositories.settings_repository import AdminSettingsRepository
from bestprice.repositories.supported_vendor_repository import SupportedVendorRepository
from bestprice.repositories.organization_repository import OrganizationRepository
from bestprice.repositories.store_repository import StoreRepository
from bestprice.repositories.order_repository import OrderRepository
from bestprice.repositories.asn_repository import AsnRepository
from bestprice.repositories.plan_settings_repository import PlanSettingsRepository
from bestprice.repositories.credentials_repository import CompanyVendorCredentialsRepository
from bestprice.repositories.product_repository import ProductRepository
from bestprice.repositories.vendor_inventory_repository import VendorInventoryRepository
from bestprice.repositories.user_repository import UserRepository

__all__ = [
    'AdminSettingsRepository',
    'SupportedVendorRepository',
    'OrganizationRepository',
    'StoreRepository',
    'OrderRepository',
    'AsnRepository',
    'PlanSettingsRepository',
    'CompanyVendorCredentialsRepository',
    'ProductRepository',
    'VendorInventoryRepository',
    'UserRepository',
]
