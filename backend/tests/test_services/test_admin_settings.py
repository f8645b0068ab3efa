"""
Unit tests for admin settings and logo storage

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock, patch

from bestprice.domain.settings import AdminSettings, MASK
from bestprice.services.admin_settings_service import AdminSettingsService
from bestprice.services import logo_storage


@pytest.fixture
def repository():
    repo = MagicMock()
    repo.get.return_value = AdminSettings(id=1, sendgrid_api_key="SG.secret", smtp_port=587)
    repo.upsert.side_effect = lambda fields: AdminSettings(id=1, **fields)
    return repo


@pytest.fixture
def service(repository):
    return AdminSettingsService(repository)


@pytest.fixture
def upload_dir(tmp_path):
    with patch.object(logo_storage.settings, "LOGO_UPLOAD_DIR", str(tmp_path)):
        yield tmp_path


class TestAdminSettings:

    def test_defaults_when_no_row(self, service, repository):
        repository.get.return_value = None
        settings = service.get_settings()
        assert settings.system_time_zone == "America/New_York"
        assert settings.max_organizations == 1000
        assert settings.registration_enabled is True

    def test_secrets_are_masked(self, service):
        data = service.get_settings().to_dict()
        assert data["sendgrid_api_key"] == MASK
        assert data["smtp_password"] is None

    def test_masked_and_unknown_fields_are_dropped(self, service, repository):
        service.update_settings({"sendgrid_api_key": MASK, "brand_name": "BestPrice", "id": 7, "bogus": 1})
        repository.upsert.assert_called_once_with({"brand_name": "BestPrice"})

    def test_nothing_to_update(self, service, repository):
        service.update_settings({"smtp_password": MASK})
        repository.upsert.assert_not_called()

    def test_invalid_value_rejected(self, service, repository):
        with pytest.raises(ValueError):
            service.update_settings({"smtp_port": 70000})
        repository.upsert.assert_not_called()


class TestLogoStorage:

    def test_save_and_delete(self, upload_dir):
        url = logo_storage.save_logo(b"\x89PNG....", "image/png", prefix="platform")

        assert url.startswith("/uploads/logos/platform-")
        assert url.endswith(".png")
        assert logo_storage.delete_logo_file(url) is True
        assert list(upload_dir.iterdir()) == []

    def test_unsupported_type(self, upload_dir):
        with pytest.raises(ValueError, match="Unsupported logo type"):
            logo_storage.save_logo(b"GIF89a", "image/gif")

    def test_oversized(self, upload_dir):
        with patch.object(logo_storage.settings, "MAX_LOGO_BYTES", 4):
            with pytest.raises(ValueError, match="limit"):
                logo_storage.save_logo(b"12345", "image/png")

    def test_foreign_url_not_deleted(self, upload_dir):
        assert logo_storage.delete_logo_file("https://cdn.example.com/logo.png") is False

    def test_upload_replaces_previous_logo(self, service, repository, upload_dir):
        old = logo_storage.save_logo(b"old", "image/png")
        repository.get.return_value = AdminSettings(id=1, logo_url=old)

        new = service.upload_logo(b"new", "image/webp")

        repository.upsert.assert_called_once_with({"logo_url": new})
        assert [p.name for p in upload_dir.iterdir()] == [new.rsplit("/", 1)[1]]
