"""
Database models

SQLAlchemy declarations of the schema. Queries go through the repositories
(raw SQL); these classes are used to create and document the tables.
"""
from .company import Company, OrganizationStatusAuditLog, Store, User, UserStore, PlanSettings, AdminSettings
from .vendor import SupportedVendor, CompanyVendorCredentials, Product, VendorProductMapping, VendorInventory
from .order import Order, OrderItem, PoSequence, Asn, AsnItem

__all__ = [
    "Company",
    "OrganizationStatusAuditLog",
    "Store",
    "User",
    "UserStore",
    "PlanSettings",
    "AdminSettings",
    "SupportedVendor",
    "CompanyVendorCredentials",
    "Product",
    "VendorProductMapping",
    "VendorInventory",
    "Order",
    "OrderItem",
    "PoSequence",
    "Asn",
    "AsnItem",
]
