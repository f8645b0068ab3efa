#!/usr/bin/env python3
"""
Create the schema and seed the supported vendors and plan catalog

Purpose: Bootstrap an empty database (idempotent; existing rows are kept)
Author: TM3
Date: 2025-10-17

Usage:
    export DATABASE_URL="postgresql://..."
    python3 backend/scripts/setup/init_db.py
"""
import json

from bestprice.core.database import Base, engine, get_db_connection_dict
import bestprice.models  # noqa: F401  (registers the tables on Base.metadata)


def _field(name, label, type="text", required=True, aliases=None, placeholder=None):
    return {
        "name": name,
        "label": label,
        "type": type,
        "required": required,
        "aliases": aliases or [],
        "placeholder": placeholder,
    }


SUPPORTED_VENDORS = [
    {
        "name": "Lipsey's",
        "vendor_short_code": "lipseys",
        "description": "Firearms distributor with REST integration API",
        "api_type": "rest_api",
        "product_record_priority": 1,
        "sort_order": 1,
        "credential_fields": [
            _field("email", "Email", "email", aliases=["userName"]),
            _field("password", "Password", "password"),
        ],
        "features": {"electronicOrdering": True, "realTimePricing": True, "inventorySync": True, "productCatalog": True},
    },
    {
        "name": "Chattanooga Shooting Supplies",
        "vendor_short_code": "chattanooga",
        "description": "REST v5 product feed",
        "api_type": "rest_api",
        "product_record_priority": 2,
        "sort_order": 2,
        "credential_fields": [
            _field("accountNumber", "Account Number", aliases=["account_number"]),
            _field("username", "Username"),
            _field("chattanoogaPassword", "Password", "password", aliases=["password"]),
            _field("sid", "SID"),
            _field("token", "Token", "password"),
        ],
        "features": {"electronicOrdering": True, "realTimePricing": True, "inventorySync": True, "productCatalog": True},
    },
    {
        "name": "Sports South",
        "vendor_short_code": "sports_south",
        "description": "XML web service (DailyItemUpdate)",
        "api_type": "soap",
        "product_record_priority": 3,
        "sort_order": 3,
        "credential_fields": [
            _field("userName", "User Name", aliases=["user_name"]),
            _field("customerNumber", "Customer Number", aliases=["customer_number"]),
            _field("password", "Password", "password"),
            _field("source", "Source"),
        ],
        "features": {"electronicOrdering": True, "realTimePricing": True, "inventorySync": True, "productCatalog": True},
    },
    {
        "name": "Bill Hicks & Co.",
        "vendor_short_code": "bill_hicks",
        "description": "FTP catalog and inventory feeds",
        "api_type": "ftp",
        "product_record_priority": 4,
        "sort_order": 4,
        "credential_fields": [
            _field("ftpServer", "FTP Server", placeholder="ftp.billhicksco.com"),
            _field("ftpUsername", "FTP Username"),
            _field("ftpPassword", "FTP Password", "password"),
            _field("ftpPort", "FTP Port", "number", required=False, placeholder="21"),
            _field("ftpBasePath", "Base Path", required=False, placeholder="/MicroBiz/Feeds"),
        ],
        "features": {"electronicOrdering": False, "realTimePricing": False, "inventorySync": True, "productCatalog": True},
    },
]

PLAN_SETTINGS = [
    # plan_id, name, users, vendors, orders, features
    ("free", "Free", 2, 1, 50, {}),
    ("standard", "Standard", 25, 6, 1000, {"advanced_analytics": True, "api_access": True}),
    ("enterprise", "Enterprise", 100, 999, 10000, {
        "advanced_analytics": True, "api_access": True, "online_ordering": True,
        "asn_processing": True, "webhook_export": True,
    }),
]


def create_schema():
    print("🗄️  Creating tables...")
    Base.metadata.create_all(bind=engine)
    print(f"✅ {len(Base.metadata.tables)} tables ready")


def seed(cursor):
    print("\n📦 Seeding supported vendors...")
    for vendor in SUPPORTED_VENDORS:
        cursor.execute("""
            INSERT INTO supported_vendors (
                name, vendor_short_code, description, api_type, vendor_type,
                credential_fields, features, name_aliases, is_enabled, sort_order,
                product_record_priority, admin_connection_status
            ) VALUES (%s, %s, %s, %s, 'distributor', %s, %s, '[]', true, %s, %s, 'not_configured')
            ON CONFLICT (name) DO NOTHING
        """, (
            vendor["name"], vendor["vendor_short_code"], vendor["description"], vendor["api_type"],
            json.dumps(vendor["credential_fields"]), json.dumps(vendor["features"]),
            vendor["sort_order"], vendor["product_record_priority"],
        ))
        print(f"   {'+' if cursor.rowcount else '='} {vendor['name']}")

    print("\n💳 Seeding plan settings...")
    for sort_order, (plan_id, plan_name, users, vendors, orders, features) in enumerate(PLAN_SETTINGS):
        cursor.execute("""
            INSERT INTO plan_settings (
                plan_id, plan_name, max_users, max_vendors, max_orders,
                online_ordering, asn_processing, webhook_export, advanced_analytics, api_access,
                is_active, sort_order
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, true, %s)
            ON CONFLICT (plan_id) DO NOTHING
        """, (
            plan_id, plan_name, users, vendors, orders,
            features.get("online_ordering", False), features.get("asn_processing", False),
            features.get("webhook_export", False), features.get("advanced_analytics", False),
            features.get("api_access", False), sort_order,
        ))
        print(f"   {'+' if cursor.rowcount else '='} {plan_name}")


def main():
    create_schema()

    conn = get_db_connection_dict()
    cursor = conn.cursor()
    try:
        seed(cursor)
        conn.commit()
        print("\n✅ Database initialized")
    except Exception as e:
        conn.rollback()
        print(f"\n❌ Error seeding database: {e}")
        raise
    finally:
        cursor.close()
        conn.close()


if __name__ == "__main__":
    main()
