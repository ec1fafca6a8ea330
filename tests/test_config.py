"""Tests for settings loading."""

from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.config.settings import AppSettings, StorageSettings


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestStorageSettings:
    """Tests for StorageSettings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("EXPENSE_TRACKER_STORAGE_DATA_DIR", raising=False)
        monkeypatch.delenv("EXPENSE_TRACKER_STORAGE_KEY", raising=False)
        settings = StorageSettings()
        assert settings.data_dir == Path("data")
        assert settings.key == "expenses"
        assert settings.audit_path == Path("data") / "audit.jsonl"

    def test_env_prefix(self, monkeypatch, tmp_path):
        monkeypatch.setenv("EXPENSE_TRACKER_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("EXPENSE_TRACKER_STORAGE_KEY", "household")
        settings = StorageSettings()
        assert settings.data_dir == tmp_path
        assert settings.key == "household"
        assert settings.audit_path == tmp_path / "audit.jsonl"

    def test_key_must_not_be_a_path(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_TRACKER_STORAGE_KEY", "../etc")
        with pytest.raises(ValidationError):
            StorageSettings()


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self):
        settings = AppSettings()
        assert settings.default_page_size == 10
        assert settings.amount_filter_ceiling == Decimal("1000000")
        assert settings.recent_window_days == 7

    def test_only_settings_the_app_reads(self):
        """Test that every declared setting has a consumer."""
        assert set(AppSettings.model_fields) == {
            "default_page_size",
            "amount_filter_ceiling",
            "recent_window_days",
            "trend_months",
            "currency_code",
        }
        assert set(StorageSettings.model_fields) == {"data_dir", "key", "audit_log_enabled"}

    def test_invalid_page_size(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_PAGE_SIZE", "0")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        """Test that a bad value is reported instead of raised."""
        monkeypatch.setenv("TREND_MONTHS", "-1")
        results = validate_all_settings()
        assert results["storage"] is True
        assert results["app"] is False
        assert "app_error" in results


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
