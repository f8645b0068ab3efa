"""
Organization Service - status, plan and trial changes for companies

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, Any, Optional

from bestprice.domain.organization import Organization, COMPANY_STATUSES, PLANS
from bestprice.repositories.organization_repository import OrganizationRepository
from bestprice.repositories.plan_settings_repository import PlanSettingsRepository

logger = logging.getLogger(__name__)

MAX_TRIAL_EXTENSION_DAYS = 90
PROFILE_FIELDS = (
    "name", "email", "phone", "address1", "address2", "city", "state", "zip_code", "country",
)


class OrganizationService:

    def __init__(
        self,
        repository: Optional[OrganizationRepository] = None,
        plan_repository: Optional[PlanSettingsRepository] = None
    ):
        self.repository = repository or OrganizationRepository()
        self.plan_repository = plan_repository or PlanSettingsRepository()

    def get_company(self, company_id: int) -> Organization:
        company = self.repository.find_by_id(company_id)
        if not company:
            raise LookupError(f"Organization {company_id} not found")
        return company

    def update_status(self, company_id: int, new_status: str, reason: Optional[str] = None,
                      changed_by: Optional[str] = None) -> Organization:
        """
        Change status and write the audit row

        Raises:
            ValueError: unknown status
            LookupError: unknown company
        """
        if new_status not in COMPANY_STATUSES:
            raise ValueError(f"Invalid status '{new_status}'. Must be one of: {', '.join(COMPANY_STATUSES)}")

        company = self.repository.update_status(company_id, new_status, reason, changed_by)
        if not company:
            raise LookupError(f"Organization {company_id} not found")
        logger.info(f"Organization {company.slug} status -> {new_status} by {changed_by or 'system'}")
        return company

    def change_plan(self, company_id: int, plan: str) -> Organization:
        """
        Raises:
            ValueError: the plan is neither built in nor configured
        """
        plan = (plan or "").strip().lower()
        if plan not in PLANS and not self.plan_repository.find_by_plan(plan):
            raise ValueError(f"Unknown plan '{plan}'")

        company = self.repository.update(company_id, {"plan": plan})
        if not company:
            raise LookupError(f"Organization {company_id} not found")
        logger.info(f"Organization {company.slug} moved to plan {plan}")
        return company

    def extend_trial(self, company_id: int, days: int) -> Organization:
        if days < 1 or days > MAX_TRIAL_EXTENSION_DAYS:
            raise ValueError(f"Trial extension must be between 1 and {MAX_TRIAL_EXTENSION_DAYS} days")

        company = self.repository.extend_trial(company_id, days)
        if not company:
            raise LookupError(f"Organization {company_id} not found")
        logger.info(f"Organization {company.slug} trial extended by {days} days (now {company.trial_ends_at})")
        return company

    def update_profile(self, company_id: int, data: Dict[str, Any]) -> Organization:
        fields = {k: v for k, v in data.items() if k in PROFILE_FIELDS and v is not None}
        if "name" in fields and not str(fields["name"]).strip():
            raise ValueError("Company name cannot be empty")
        company = self.repository.update(company_id, fields) if fields else self.get_company(company_id)
        if not company:
            raise LookupError(f"Organization {company_id} not found")
        return company

    def update_settings(self, company_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Shallow-merge into companies.settings; a None value removes the key"""
        company = self.get_company(company_id)
        merged = dict(company.settings or {})
        for key, value in changes.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        self.repository.update(company_id, {"settings": merged})
        return merged
