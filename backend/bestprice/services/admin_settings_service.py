"""
Admin Settings Service - platform configuration

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, Any, Optional

from bestprice.domain.settings import AdminSettings, is_masked
from bestprice.repositories.settings_repository import AdminSettingsRepository
from bestprice.services.logo_storage import save_logo, delete_logo_file

logger = logging.getLogger(__name__)

READ_ONLY_FIELDS = ("id", "updated_at")


class AdminSettingsService:

    def __init__(self, repository: Optional[AdminSettingsRepository] = None):
        self.repository = repository or AdminSettingsRepository()

    def get_settings(self) -> AdminSettings:
        """Stored settings, or defaults when the row does not exist yet"""
        return self.repository.get() or AdminSettings()

    def update_settings(self, partial: Dict[str, Any]) -> AdminSettings:
        """
        Apply a partial update

        Masked values (secrets echoed back by the UI) are dropped so the
        stored secret survives.

        Raises:
            ValueError: when the merged settings fail validation
        """
        changes = {
            key: value for key, value in partial.items()
            if key not in READ_ONLY_FIELDS
            and key in AdminSettings.model_fields
            and not is_masked(value)
        }
        if not changes:
            return self.get_settings()

        current = self.get_settings()
        # Validate the merged result before writing; pydantic raises ValueError
        AdminSettings(**{**current.model_dump(), **changes})

        updated = self.repository.upsert(changes)
        logger.info(f"Admin settings updated: {sorted(changes.keys())}")
        return updated

    def upload_logo(self, content: bytes, content_type: Optional[str]) -> str:
        current = self.get_settings()
        logo_url = save_logo(content, content_type, prefix="platform")
        self.repository.upsert({"logo_url": logo_url})
        delete_logo_file(current.logo_url)
        return logo_url

    def delete_logo(self) -> bool:
        current = self.get_settings()
        if not current.logo_url:
            return False
        delete_logo_file(current.logo_url)
        self.repository.upsert({"logo_url": None})
        return True
