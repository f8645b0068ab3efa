"""
Unit tests for OrganizationService

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock

from bestprice.domain.organization import Organization
from bestprice.services.organization_service import OrganizationService


def company(**fields):
    data = dict(id=3, name="Demo Gun Shop", slug="demo-gun-shop", settings={"theme": "dark", "beta": True})
    data.update(fields)
    return Organization(**data)


@pytest.fixture
def organizations():
    repo = MagicMock()
    repo.find_by_id.return_value = company()
    repo.update.return_value = company()
    repo.update_status.return_value = company(status="paused")
    repo.extend_trial.return_value = company()
    return repo


@pytest.fixture
def plans():
    repo = MagicMock()
    repo.find_by_plan.return_value = None
    return repo


@pytest.fixture
def service(organizations, plans):
    return OrganizationService(organizations, plans)


class TestOrganizationService:

    def test_update_status_writes_audit(self, service, organizations):
        service.update_status(3, "paused", "non-payment", changed_by="admin@example.com")
        organizations.update_status.assert_called_once_with(3, "paused", "non-payment", "admin@example.com")

    def test_invalid_status(self, service):
        with pytest.raises(ValueError, match="Invalid status"):
            service.update_status(3, "deleted")

    def test_change_to_builtin_plan(self, service, organizations):
        service.change_plan(3, " Enterprise ")
        organizations.update.assert_called_once_with(3, {"plan": "enterprise"})

    def test_unknown_plan(self, service):
        with pytest.raises(ValueError, match="Unknown plan"):
            service.change_plan(3, "platinum")

    def test_configured_plan_accepted(self, service, plans, organizations):
        plans.find_by_plan.return_value = object()
        service.change_plan(3, "platinum")
        organizations.update.assert_called_once_with(3, {"plan": "platinum"})

    @pytest.mark.parametrize("days", [0, 91, -5])
    def test_extend_trial_bounds(self, service, days):
        with pytest.raises(ValueError, match="between 1 and 90"):
            service.extend_trial(3, days)

    def test_extend_trial(self, service, organizations):
        service.extend_trial(3, 14)
        organizations.extend_trial.assert_called_once_with(3, 14)

    def test_missing_company(self, service, organizations):
        organizations.extend_trial.return_value = None
        with pytest.raises(LookupError):
            service.extend_trial(3, 14)

    def test_update_profile_only_writes_profile_fields(self, service, organizations):
        service.update_profile(3, {"name": "New Name", "plan": "enterprise", "city": None})
        organizations.update.assert_called_once_with(3, {"name": "New Name"})

    def test_update_settings_merges_and_removes(self, service, organizations):
        merged = service.update_settings(3, {"theme": "light", "beta": None, "locale": "en-US"})
        assert merged == {"theme": "light", "locale": "en-US"}
        organizations.update.assert_called_once_with(3, {"settings": merged})
