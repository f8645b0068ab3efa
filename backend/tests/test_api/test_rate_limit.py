"""
Tests for the sliding-window rate limiter and the per-endpoint limit on
manual vendor syncs

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock, AsyncMock, patch
from fastapi.testclient import TestClient

from bestprice.main import app
from bestprice.core.auth import get_current_user
from bestprice.core.rate_limit import RateLimiter, rate_limiter
from bestprice.services.vendor_sync_base import CatalogSyncResult


class TestRateLimiter:

    def test_blocks_after_limit(self):
        limiter = RateLimiter()

        results = [limiter.is_allowed("ip:1.2.3.4", max_requests=3)[0] for _ in range(4)]

        assert results == [True, True, True, False]

    def test_remaining_and_retry_after(self):
        limiter = RateLimiter()

        assert limiter.is_allowed("jwt:abc", max_requests=2) == (True, 1, 0)
        limiter.is_allowed("jwt:abc", max_requests=2)
        allowed, remaining, retry_after = limiter.is_allowed("jwt:abc", max_requests=2)

        assert (allowed, remaining) == (False, 0)
        assert 1 <= retry_after <= 61

    def test_identities_are_independent(self):
        limiter = RateLimiter()
        limiter.is_allowed("a", max_requests=1)

        assert limiter.is_allowed("a", max_requests=1)[0] is False
        assert limiter.is_allowed("b", max_requests=1)[0] is True


class TestManualSyncLimit:

    @pytest.fixture
    def client(self, platform_admin_user):
        rate_limiter.reset()
        app.dependency_overrides[get_current_user] = lambda: platform_admin_user
        yield TestClient(app)
        app.dependency_overrides.clear()
        rate_limiter.reset()

    def test_sixth_manual_sync_is_rejected(self, client):
        service = MagicMock()
        service.run_sync = AsyncMock(return_value=CatalogSyncResult(
            success=True, message="No changes detected", vendor="Chattanooga Shooting Supplies"
        ))

        with patch("bestprice.api.vendor_sync.chattanooga_service", service):
            codes = [client.post("/api/chattanooga/manual-sync").status_code for _ in range(6)]

        assert codes == [200] * 5 + [429]
        assert service.run_sync.await_count == 5

    def test_response_carries_limit_headers(self, client):
        with patch("bestprice.api.vendor_sync.chattanooga_service") as service:
            service.clear_sync_error.return_value = "never_synced"
            response = client.post("/api/chattanooga/clear-error")

        assert response.json()["data"] == {"sync_status": "never_synced"}
        assert response.headers["X-RateLimit-Limit"] == "100"
