"""
Plan Enforcement Service - subscription limits and feature gates

Limits come from plan_settings (matched by plan_id or plan_name), with
per-company overrides (companies.max_users / max_vendors / max_orders) and
built-in defaults when the plan is not configured. An unlimited limit is
reported as -1.

Author: TM3
Date: 2025-10-17
"""
import math
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Dict, Optional, Any

from bestprice.domain.organization import Organization, BLOCKED_STATUSES
from bestprice.repositories.plan_settings_repository import PlanSettingsRepository
from bestprice.repositories.organization_repository import OrganizationRepository

logger = logging.getLogger(__name__)

UNLIMITED = -1
PLAN_ACTIONS = ("add_user", "add_vendor", "create_order", "access_feature")
FEATURES = ("advanced_analytics", "api_access", "online_ordering", "asn_processing", "webhook_export")

# Accepted alternate feature names
FEATURE_ALIASES = {
    "advancedanalytics": "advanced_analytics",
    "apiaccess": "api_access",
    "orderprocessing": "online_ordering",
    "onlineordering": "online_ordering",
    "asnprocessing": "asn_processing",
    "webhookexport": "webhook_export",
}


# ============================================================================
# Response Models
# ============================================================================

@dataclass
class PlanLimits:
    max_users: int
    max_vendors: int
    max_orders: int
    features: Dict[str, bool] = field(default_factory=dict)


@dataclass
class PlanDecision:
    allowed: bool
    message: Optional[str] = None
    upgrade_url: Optional[str] = None


class PlanActionDenied(Exception):
    """Raised by enforce() when the company's plan does not allow an action"""

    def __init__(self, decision: PlanDecision):
        super().__init__(decision.message)
        self.decision = decision


DEFAULT_PLAN_LIMITS = {
    "free": PlanLimits(2, 1, 50, {f: False for f in FEATURES}),
    "standard": PlanLimits(25, 6, 1000, {
        "advanced_analytics": True,
        "api_access": True,
        "online_ordering": False,
        "asn_processing": False,
        "webhook_export": False,
    }),
    "enterprise": PlanLimits(100, 999, 10000, {f: True for f in FEATURES}),
}


def normalize_feature(name: str) -> str:
    key = (name or "").strip().lower().replace("_", "")
    return FEATURE_ALIASES.get(key, (name or "").strip().lower())


def _limit(value: Optional[int]) -> int:
    return UNLIMITED if value is None else value


def _usage_entry(current: int, limit: int) -> Dict[str, Any]:
    if limit == UNLIMITED:
        return {"current": current, "limit": UNLIMITED, "available": UNLIMITED, "at_limit": False}
    return {
        "current": current,
        "limit": limit,
        "available": max(0, limit - current),
        "at_limit": current >= limit,
    }


def trial_days_remaining(trial_ends_at: Optional[datetime], now: Optional[datetime] = None) -> int:
    if not trial_ends_at:
        return 0
    now = now or datetime.now(timezone.utc)
    if trial_ends_at.tzinfo is None:
        trial_ends_at = trial_ends_at.replace(tzinfo=timezone.utc)
    days = (trial_ends_at - now).total_seconds() / 86400
    return max(0, math.ceil(days))


class PlanEnforcementService:

    def __init__(
        self,
        plan_repository: Optional[PlanSettingsRepository] = None,
        organization_repository: Optional[OrganizationRepository] = None
    ):
        self.plan_repository = plan_repository or PlanSettingsRepository()
        self.organization_repository = organization_repository or OrganizationRepository()

    def get_plan_limits(self, plan: str) -> PlanLimits:
        """Configured limits for a plan, falling back to the built-in defaults"""
        try:
            settings_row = self.plan_repository.find_by_plan(plan)
        except Exception as e:
            logger.error(f"Could not load plan settings for '{plan}': {e}")
            settings_row = None

        if not settings_row:
            return DEFAULT_PLAN_LIMITS.get((plan or "").lower(), DEFAULT_PLAN_LIMITS["free"])

        return PlanLimits(
            max_users=_limit(settings_row.max_users),
            max_vendors=_limit(settings_row.max_vendors),
            max_orders=_limit(settings_row.max_orders),
            features={f: bool(getattr(settings_row, f)) for f in FEATURES},
        )

    def get_company_limits(self, company: Organization) -> PlanLimits:
        limits = self.get_plan_limits(company.plan)
        return PlanLimits(
            max_users=company.max_users if company.max_users is not None else limits.max_users,
            max_vendors=company.max_vendors if company.max_vendors is not None else limits.max_vendors,
            max_orders=company.max_orders if company.max_orders is not None else limits.max_orders,
            features=dict(limits.features),
        )

    def check_usage(self, company: Organization, limits: Optional[PlanLimits] = None) -> Dict[str, Dict[str, Any]]:
        limits = limits or self.get_company_limits(company)
        counts = self.organization_repository.get_usage_counts(company.id)
        return {
            "users": _usage_entry(counts["users"], limits.max_users),
            "vendors": _usage_entry(counts["vendors"], limits.max_vendors),
            "orders": _usage_entry(counts["orders"], limits.max_orders),
        }

    def validate_plan_action(self, company: Organization, action: str, feature: Optional[str] = None) -> PlanDecision:
        if company.status in BLOCKED_STATUSES:
            return PlanDecision(
                allowed=False,
                message=f"Account is {company.status}. Please update your subscription to continue.",
                upgrade_url=f"/org/{company.slug}/billing"
            )

        upgrade_url = f"/org/{company.slug}/billing/upgrade"
        limits = self.get_company_limits(company)

        if action == "access_feature":
            if not feature:
                return PlanDecision(allowed=False, message="Feature name required")
            if not limits.features.get(normalize_feature(feature), False):
                return PlanDecision(
                    allowed=False,
                    message=f"Feature '{feature}' is not available on your current plan ({company.plan}).",
                    upgrade_url=upgrade_url
                )
            return PlanDecision(allowed=True)

        if action not in PLAN_ACTIONS:
            return PlanDecision(allowed=False, message="Unknown action")

        usage = self.check_usage(company, limits)

        if action == "add_user" and usage["users"]["at_limit"]:
            return PlanDecision(
                allowed=False,
                message=f"User limit reached ({usage['users']['limit']}). Upgrade your plan to add more users.",
                upgrade_url=upgrade_url
            )
        if action == "add_vendor" and usage["vendors"]["at_limit"]:
            return PlanDecision(
                allowed=False,
                message=f"Vendor limit reached ({usage['vendors']['limit']}). Upgrade your plan to add more vendors.",
                upgrade_url=upgrade_url
            )
        if action == "create_order" and usage["orders"]["at_limit"]:
            return PlanDecision(
                allowed=False,
                message=f"Monthly order limit reached ({usage['orders']['limit']}). Upgrade your plan or wait for next month.",
                upgrade_url=upgrade_url
            )

        return PlanDecision(allowed=True)

    def enforce(self, company: Organization, action: str, feature: Optional[str] = None):
        """
        Raises:
            PlanActionDenied: when validate_plan_action denies the action
        """
        decision = self.validate_plan_action(company, action, feature)
        if not decision.allowed:
            logger.info(f"Plan denied '{action}' for company {company.slug}: {decision.message}")
            raise PlanActionDenied(decision)

    def get_plan_status(self, company: Organization, now: Optional[datetime] = None) -> Dict[str, Any]:
        limits = self.get_company_limits(company)
        usage = self.check_usage(company, limits)
        days_left = trial_days_remaining(company.trial_ends_at, now)

        def close(entry, threshold):
            return entry["limit"] != UNLIMITED and entry["available"] <= threshold

        return {
            "subscription": {
                "status": company.status,
                "trial_status": company.trial_status,
                "plan": company.plan,
                "trial_ends_at": company.trial_ends_at,
                "trial_days_remaining": days_left,
                "billing_provider": company.billing_provider,
            },
            "limits": asdict(limits),
            "usage": usage,
            "warnings": {
                "trial_expiring": company.status == "trial" and days_left <= 3,
                "user_limit_close": close(usage["users"], 2),
                "vendor_limit_close": close(usage["vendors"], 1),
                "order_limit_close": close(usage["orders"], 50),
            },
        }
