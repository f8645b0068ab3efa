"""
API tests with FastAPI TestClient

Authentication is replaced through dependency_overrides and the module
level services of each router are patched, so no database is needed.

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock, AsyncMock, patch
from fastapi.testclient import TestClient

from bestprice.main import app
from bestprice.core.auth import get_current_user
from bestprice.core.rate_limit import rate_limiter
from bestprice.domain.organization import Store
from bestprice.services.plan_enforcement_service import PlanActionDenied, PlanDecision


@pytest.fixture
def client():
    rate_limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def as_user(client):
    def login_as(user):
        app.dependency_overrides[get_current_user] = lambda: user
        return client
    return login_as


@pytest.fixture
def organizations(sample_company):
    with patch("bestprice.api.common.organization_repository") as repo:
        repo.find_by_slug.side_effect = lambda slug: sample_company if slug == sample_company.slug else None
        yield repo


class TestPublicEndpoints:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "online"

    def test_health_degraded_without_database(self, client):
        with patch("bestprice.main.get_db_connection_with_retry", side_effect=Exception("connection refused")):
            response = client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "degraded"
        assert body["database"]["status"] == "disconnected"

    def test_protected_route_requires_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401


class TestOrganizationAccess:

    def test_list_stores_envelope(self, as_user, org_admin_user, organizations):
        store = Store(id=7, company_id=3, name="Main", slug="main", store_number="01")
        with patch("bestprice.api.stores.store_repository") as stores:
            stores.find_all.return_value = [store]
            response = as_user(org_admin_user).get("/org/demo-gun-shop/api/stores")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "success"
        assert body["count"] == 1
        assert body["data"][0]["slug"] == "main"

    def test_other_organization_forbidden(self, as_user, org_admin_user, organizations):
        response = as_user(org_admin_user).get("/org/someone-else/api/stores")
        assert response.status_code == 403

    def test_platform_admin_unknown_org(self, as_user, platform_admin_user, organizations):
        response = as_user(platform_admin_user).get("/org/missing/api/stores")
        assert response.status_code == 404

    def test_validation_error_maps_to_400(self, as_user, org_admin_user, organizations):
        with patch("bestprice.api.stores.store_service") as service:
            service.create_store.side_effect = ValueError("Store number 01 is already in use")
            response = as_user(org_admin_user).post(
                "/org/demo-gun-shop/api/stores", json={"name": "Main", "store_number": "01"}
            )

        assert response.status_code == 400
        assert "already in use" in response.json()["detail"]

    def test_missing_store_maps_to_404(self, as_user, org_admin_user, organizations):
        with patch("bestprice.api.stores.store_service") as service:
            service.get_store.side_effect = LookupError("Store 99 not found")
            response = as_user(org_admin_user).get("/org/demo-gun-shop/api/stores/99")

        assert response.status_code == 404

    def test_plan_limit_maps_to_403(self, as_user, org_admin_user, organizations):
        decision = PlanDecision(
            allowed=False,
            message="Monthly order limit reached (1000). Upgrade your plan or wait for next month.",
            upgrade_url="/org/demo-gun-shop/billing/upgrade"
        )
        with patch("bestprice.api.orders.plan_service") as plans, \
                patch("bestprice.api.orders.order_service") as orders:
            plans.enforce.side_effect = PlanActionDenied(decision)
            response = as_user(org_admin_user).post(
                "/org/demo-gun-shop/api/orders", json={"store_id": 7, "vendor_id": 1}
            )

        assert response.status_code == 403
        assert response.json()["detail"]["upgrade_url"] == "/org/demo-gun-shop/billing/upgrade"
        orders.create_order.assert_not_called()

    def test_admin_routes_require_platform_admin(self, as_user, org_admin_user):
        response = as_user(org_admin_user).get("/api/admin/plan-settings")
        assert response.status_code == 403


class TestSyncKey:

    def test_missing_key(self, client):
        with patch("bestprice.api.sync.settings") as settings:
            settings.SYNC_API_KEY = "cron-secret"
            response = client.post("/api/v1/sync/run-due")
        assert response.status_code == 401

    def test_wrong_key(self, client):
        with patch("bestprice.api.sync.settings") as settings:
            settings.SYNC_API_KEY = "cron-secret"
            response = client.post("/api/v1/sync/run-due", headers={"X-Sync-Key": "guess"})
        assert response.status_code == 401

    def test_run_due(self, client):
        runs = [
            {"job": "lipseys_catalog", "due": True, "result": {"success": True}},
            {"job": "bill_hicks_inventory", "due": False},
        ]
        with patch("bestprice.api.sync.settings") as settings, \
                patch("bestprice.api.sync.scheduler") as scheduler:
            settings.SYNC_API_KEY = "cron-secret"
            scheduler.run_due_syncs = AsyncMock(return_value=runs)
            response = client.post("/api/v1/sync/run-due", headers={"X-Sync-Key": "cron-secret"})

        body = response.json()
        assert response.status_code == 200
        assert body["ran"] == 1
        assert body["count"] == 2


class TestLogin:

    def test_login_issues_token(self, client):
        from bestprice.api.auth import pwd_context

        user_row = {
            "id": 12,
            "email": "owner@example.com",
            "name": "Store Owner",
            "role": "org_admin",
            "company_id": 3,
            "company_slug": "demo-gun-shop",
            "password_hash": pwd_context.hash("correct-horse"),
            "is_active": True,
        }
        with patch("bestprice.api.auth.user_repository") as users, \
                patch("bestprice.core.auth.settings") as settings:
            settings.AUTH_SECRET = "test-secret"
            users.find_by_email.return_value = user_row

            response = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "correct-horse"})
            assert response.status_code == 200
            token = response.json()["access_token"]

            me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert me.json()["data"]["company_slug"] == "demo-gun-shop"
        users.touch_login.assert_called_once_with(12)

    def test_wrong_password(self, client):
        with patch("bestprice.api.auth.user_repository") as users:
            users.find_by_email.return_value = {"id": 12, "email": "owner@example.com", "password_hash": None}
            response = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "nope"})
        assert response.status_code == 401
