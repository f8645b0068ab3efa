"""
Unit tests for PlanEnforcementService

Author: TM3
Date: 2025-10-17
"""
import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock

from bestprice.domain.organization import Organization, PlanSettings
from bestprice.services.plan_enforcement_service import (
    PlanEnforcementService, PlanActionDenied, UNLIMITED, normalize_feature, trial_days_remaining
)

NOW = datetime(2025, 10, 17, 12, 0, tzinfo=timezone.utc)


def company(**fields):
    data = dict(id=3, name="Demo Gun Shop", slug="demo-gun-shop", plan="standard", status="active")
    data.update(fields)
    return Organization(**data)


@pytest.fixture
def plans():
    repo = MagicMock()
    repo.find_by_plan.return_value = None
    return repo


@pytest.fixture
def usage():
    repo = MagicMock()
    repo.get_usage_counts.return_value = {"users": 1, "vendors": 1, "orders": 10}
    return repo


@pytest.fixture
def service(plans, usage):
    return PlanEnforcementService(plans, usage)


class TestLimits:

    def test_default_limits_when_plan_not_configured(self, service):
        limits = service.get_plan_limits("free")
        assert (limits.max_users, limits.max_vendors, limits.max_orders) == (2, 1, 50)
        assert not any(limits.features.values())

    def test_configured_plan_null_limit_is_unlimited(self, service, plans):
        plans.find_by_plan.return_value = PlanSettings(
            plan_id="custom", plan_name="Custom", max_users=10, max_vendors=None, max_orders=100, asn_processing=True
        )
        limits = service.get_plan_limits("custom")
        assert limits.max_vendors == UNLIMITED
        assert limits.features["asn_processing"] is True

    def test_plan_lookup_failure_uses_defaults(self, service, plans):
        plans.find_by_plan.side_effect = RuntimeError("db down")
        assert service.get_plan_limits("enterprise").max_users == 100

    def test_company_overrides(self, service):
        limits = service.get_company_limits(company(max_users=40))
        assert limits.max_users == 40
        assert limits.max_vendors == 6

    def test_usage_entries(self, service):
        usage = service.check_usage(company(plan="free"))
        assert usage["vendors"] == {"current": 1, "limit": 1, "available": 0, "at_limit": True}
        assert usage["orders"]["available"] == 40


class TestValidatePlanAction:

    @pytest.mark.parametrize("status", ["expired", "cancelled", "paused"])
    def test_blocked_status_denies_everything(self, service, status):
        decision = service.validate_plan_action(company(status=status), "create_order")
        assert decision.allowed is False
        assert decision.upgrade_url == "/org/demo-gun-shop/billing"

    def test_vendor_limit(self, service):
        decision = service.validate_plan_action(company(plan="free"), "add_vendor")
        assert decision.allowed is False
        assert decision.upgrade_url == "/org/demo-gun-shop/billing/upgrade"
        assert "Vendor limit reached (1)" in decision.message

    def test_within_limits(self, service):
        assert service.validate_plan_action(company(), "add_user").allowed is True

    def test_feature_gate(self, service):
        assert service.validate_plan_action(company(), "access_feature", "apiAccess").allowed is True
        denied = service.validate_plan_action(company(), "access_feature", "asn_processing")
        assert denied.allowed is False

    def test_unknown_action(self, service):
        assert service.validate_plan_action(company(), "launch_rocket").allowed is False

    def test_enforce_raises(self, service):
        with pytest.raises(PlanActionDenied) as exc:
            service.enforce(company(plan="free"), "add_vendor")
        assert exc.value.decision.upgrade_url.endswith("/billing/upgrade")


class TestPlanStatus:

    def test_trial_days_remaining_rounds_up(self):
        assert trial_days_remaining(NOW + timedelta(days=2, hours=1), NOW) == 3
        assert trial_days_remaining(NOW - timedelta(days=1), NOW) == 0
        assert trial_days_remaining(None, NOW) == 0

    def test_warnings(self, service):
        status = service.get_plan_status(
            company(plan="free", status="trial", trial_ends_at=NOW + timedelta(days=2)), NOW
        )
        assert status["subscription"]["trial_days_remaining"] == 2
        assert status["warnings"]["trial_expiring"] is True
        assert status["warnings"]["vendor_limit_close"] is True
        assert status["warnings"]["order_limit_close"] is True

    def test_unlimited_never_close(self, service, plans):
        plans.find_by_plan.return_value = PlanSettings(plan_id="x", plan_name="X")
        status = service.get_plan_status(company(plan="x"), NOW)
        assert status["usage"]["users"]["limit"] == UNLIMITED
        assert status["warnings"]["user_limit_close"] is False

    def test_normalize_feature(self):
        assert normalize_feature("ASNProcessing") == "asn_processing"
        assert normalize_feature("online_ordering") == "online_ordering"
