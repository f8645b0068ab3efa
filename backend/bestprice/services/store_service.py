"""
Store Service - store lifecycle and derived identifiers

Author: TM3
Date: 2025-10-17
"""
import re
import logging
from typing import Dict, List, Optional, Any

from bestprice.domain.organization import Store, STORE_STATUSES
from bestprice.repositories.store_repository import StoreRepository

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    """Lowercase, runs of non-alphanumerics collapsed to '-', trimmed"""
    return re.sub(r'[^a-z0-9]+', '-', (name or "").lower()).strip('-')


def unique_slug(base_slug: str, existing: List[str]) -> str:
    """base_slug, or base_slug-2, base_slug-3 ... when taken"""
    taken = set(existing)
    if base_slug not in taken:
        return base_slug
    counter = 2
    while f"{base_slug}-{counter}" in taken:
        counter += 1
    return f"{base_slug}-{counter}"


def next_store_number(existing: List[str]) -> str:
    """Highest numeric store number + 1, zero padded to 2 digits"""
    numbers = [int(n) for n in existing if n and str(n).isdigit()]
    return f"{(max(numbers) if numbers else 0) + 1:02d}"


def derive_short_name(name: str) -> str:
    return re.sub(r'[^A-Za-z0-9]', '', name or "").upper()[:8]


class StoreService:

    def __init__(self, repository: Optional[StoreRepository] = None):
        self.repository = repository or StoreRepository()

    def get_store(self, company_id: int, store_id: int) -> Store:
        """
        Raises:
            LookupError: store does not exist in this company
        """
        store = self.repository.find_by_id(company_id, store_id)
        if not store:
            raise LookupError(f"Store {store_id} not found")
        return store

    def create_store(self, company_id: int, data: Dict[str, Any]) -> Store:
        """
        Create a store, deriving slug, store_number and short_name when absent

        Raises:
            ValueError: missing name or duplicate store number
        """
        name = (data.get("name") or "").strip()
        if not name:
            raise ValueError("Store name is required")

        fields = dict(data)
        fields["name"] = name

        base_slug = slugify(fields.get("slug") or name)
        if not base_slug:
            raise ValueError("Store name must contain letters or digits")
        fields["slug"] = unique_slug(base_slug, self.repository.find_slugs(company_id, base_slug))

        store_numbers = self.repository.find_store_numbers(company_id)
        if fields.get("store_number"):
            fields["store_number"] = str(fields["store_number"]).strip()
            if fields["store_number"] in store_numbers:
                raise ValueError(f"Store number {fields['store_number']} is already in use")
        else:
            fields["store_number"] = next_store_number(store_numbers)

        if not fields.get("short_name"):
            fields["short_name"] = derive_short_name(name)

        fields.setdefault("status", "active")
        fields["is_active"] = fields["status"] == "active"

        store = self.repository.create(company_id, fields)
        logger.info(f"Created store {store.slug} (#{store.store_number}) for company {company_id}")
        return store

    def update_store(self, company_id: int, store_id: int, data: Dict[str, Any]) -> Store:
        fields = {k: v for k, v in data.items() if v is not None}

        if "slug" in fields:
            base_slug = slugify(fields["slug"])
            if not base_slug:
                raise ValueError("Invalid slug")
            current = self.get_store(company_id, store_id)
            existing = [s for s in self.repository.find_slugs(company_id, base_slug) if s != current.slug]
            fields["slug"] = unique_slug(base_slug, existing)

        if "status" in fields:
            self._check_status(fields["status"])
            fields["is_active"] = fields["status"] == "active"

        store = self.repository.update(company_id, store_id, fields)
        if not store:
            raise LookupError(f"Store {store_id} not found")
        return store

    def _check_status(self, status: str):
        if status not in STORE_STATUSES:
            raise ValueError(f"Invalid store status '{status}'. Must be one of: {', '.join(STORE_STATUSES)}")

    def set_status(self, company_id: int, store_id: int, status: str) -> Store:
        self._check_status(status)
        return self.update_store(company_id, store_id, {"status": status})

    def archive_store(self, company_id: int, store_id: int) -> Store:
        return self.set_status(company_id, store_id, "archived")

    def unarchive_store(self, company_id: int, store_id: int) -> Store:
        return self.set_status(company_id, store_id, "active")

    def delete_store(self, company_id: int, store_id: int):
        if not self.repository.delete(company_id, store_id):
            raise LookupError(f"Store {store_id} not found")
        logger.info(f"Deleted store {store_id} of company {company_id}")
