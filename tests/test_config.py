"""
Tests for settings loaded from the environment.
"""

import pytest

from gigledger.config import AppSettings, BackendSettings, validate_all_settings


class TestSettings:
    """Tests for BackendSettings and AppSettings."""

    def test_backend_url_from_env(self, monkeypatch):
        monkeypatch.setenv("GIGLEDGER_API_BASE_URL", "https://api.example.com/api/")
        assert BackendSettings().base_url == "https://api.example.com/api"

    def test_backend_url_must_be_http(self, monkeypatch):
        monkeypatch.setenv("GIGLEDGER_API_BASE_URL", "ftp://example.com")
        with pytest.raises(ValueError):
            BackendSettings()

    def test_app_defaults(self, monkeypatch):
        monkeypatch.delenv("DEFAULT_TAX_PERCENTAGE", raising=False)
        monkeypatch.delenv("MAX_CSV_UPLOAD_SIZE_MB", raising=False)
        settings = AppSettings()
        assert settings.default_tax_percentage == 3.0
        assert settings.max_csv_upload_size_bytes == 5 * 1024 * 1024

    def test_currency_and_log_level_are_normalized(self, monkeypatch):
        monkeypatch.setenv("DISPLAY_CURRENCY", "eur")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = AppSettings()
        assert settings.display_currency == "EUR"
        assert settings.log_level == "DEBUG"

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        monkeypatch.setenv("GIGLEDGER_API_TIMEOUT_SECONDS", "-1")
        results = validate_all_settings()
        assert results["backend"] is False
        assert "backend_error" in results
        assert results["app"] is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
